"""
Tests for seed ordering, field strategies and row materialization.
"""

import unittest

import pytest

from backend_ir.domain.field_lowering import build_reference_field
from backend_ir.domain.model_lowering import build_model_descriptor
from backend_ir.domain.models import (
    BindingArity,
    DeclaredType,
    FieldConstraints,
    FieldDescriptor,
    TYPE_TABLE,
)
from backend_ir.domain.seeding import (
    SeedingPlanner,
    find_reference_cycles,
    materialize_seed_rows,
    plan_field_strategy,
)
from backend_ir.validators import Diagnostics, ViolationCode


def plain_field(name, declared_type=DeclaredType.STRING, **kwargs):
    target_type, storage_type = TYPE_TABLE[declared_type]
    return FieldDescriptor(name, declared_type, target_type, storage_type, **kwargs)


def model(name, *references, fields=None):
    """A model with plain ``fields`` plus one required reference per name in ``references``."""
    all_fields = list(fields or [])
    for target in references:
        all_fields.append(build_reference_field(f"{target[:1].lower()}{target[1:]}Id", target))
    return build_model_descriptor(name, all_fields)


class TestOrdering(unittest.TestCase):
    """Test dependency ordering of models."""

    def setUp(self):
        self.planner = SeedingPlanner()

    def test_chain(self):
        """Test C referencing B referencing A seeds A, then B, then C."""
        models = [model("C", "B"), model("B", "A"), model("A")]
        plans = self.planner.plan(models)

        self.assertEqual([p.model_name for p in plans], ["A", "B", "C"])
        self.assertEqual([p.order for p in plans], [0, 1, 2])
        for plan in plans:
            for binding in plan.relationship_bindings:
                self.assertFalse(binding.deferred)

    def test_independent_models_keep_declaration_order(self):
        models = [model("Zeta"), model("Alpha"), model("Mid")]
        ordered = self.planner.order_models(models)
        self.assertEqual([m.name for m in ordered], ["Zeta", "Alpha", "Mid"])

    def test_ready_models_break_ties_by_declaration(self):
        """Test a model freed later does not jump ahead of one declared earlier."""
        models = [model("Comment", "Post"), model("Tag"), model("Post")]
        ordered = self.planner.order_models(models)
        self.assertEqual([m.name for m in ordered], ["Tag", "Post", "Comment"])

    def test_cycle_is_reported_and_deferred(self):
        """Test a reference cycle warns and defers forward references."""
        diagnostics = Diagnostics()
        models = [model("Author", "Book"), model("Book", "Author"), model("Genre")]
        plans = self.planner.plan(models, diagnostics)

        self.assertEqual([p.model_name for p in plans], ["Genre", "Author", "Book"])
        self.assertEqual(diagnostics.codes(), [ViolationCode.SEED_DEPENDENCY_CYCLE])
        self.assertFalse(diagnostics.has_errors)

        author_binding = plans[1].relationship_bindings[0]
        book_binding = plans[2].relationship_bindings[0]
        self.assertTrue(author_binding.deferred)
        self.assertFalse(book_binding.deferred)

    def test_self_reference_is_deferred(self):
        diagnostics = Diagnostics()
        employee = build_model_descriptor(
            "Employee", [build_reference_field("manager", "Employee", required=False)]
        )
        plans = self.planner.plan([employee], diagnostics)

        self.assertEqual(diagnostics.violations, [])
        binding = plans[0].relationship_bindings[0]
        self.assertEqual(binding.target_model, "Employee")
        self.assertTrue(binding.deferred)

    def test_counts(self):
        models = [model("User"), model("Post", "User")]
        plans = self.planner.plan(models, default_count=5, counts={"Post": 20})
        self.assertEqual({p.model_name: p.count for p in plans}, {"User": 5, "Post": 20})


class TestPlan(unittest.TestCase):
    """Test the per-model plan contents."""

    def test_bindings_and_strategies(self):
        post = build_model_descriptor("Post", [
            plain_field("title"),
            build_reference_field("userId", "User"),
            build_reference_field("tags", "Tag", many=True, required=False),
        ])
        plans = SeedingPlanner().plan([model("User"), model("Tag"), post])
        plan = plans[2]

        self.assertEqual([s.field_name for s in plan.field_strategies], ["title"])
        self.assertEqual(
            [(b.field_name, b.target_model, b.arity) for b in plan.relationship_bindings],
            [("userId", "User", BindingArity.ONE), ("tags", "Tag", BindingArity.ARRAY)],
        )

    def test_auto_managed_fields_are_skipped(self):
        event = build_model_descriptor("Event", [
            plain_field("createdAt", DeclaredType.DATETIME),
            plain_field("name"),
        ])
        plan = SeedingPlanner().plan([event])[0]
        self.assertEqual([s.field_name for s in plan.field_strategies], ["name"])


class TestFieldStrategy(unittest.TestCase):
    """Test Faker provider selection per field."""

    def test_unique_email(self):
        strategy = plan_field_strategy(plain_field("email", unique=True))
        self.assertEqual(strategy.expression, "faker.unique.email()")

    def test_enum_values(self):
        field = plain_field(
            "status", DeclaredType.ENUM,
            constraints=FieldConstraints(enum_values=["draft", "published"]),
        )
        self.assertEqual(
            plan_field_strategy(field).expression,
            "faker.random_element(elements=['draft', 'published'])",
        )

    def test_number_uses_constraints(self):
        field = plain_field("age", DeclaredType.NUMBER, constraints=FieldConstraints(min=18, max=99))
        self.assertEqual(
            plan_field_strategy(field).expression, "faker.random_int(min=18, max=99)"
        )

    def test_price_is_float(self):
        strategy = plan_field_strategy(plain_field("price", DeclaredType.NUMBER))
        self.assertEqual(strategy.provider, "pyfloat")
        self.assertEqual(strategy.arguments['right_digits'], 2)

    def test_short_text(self):
        field = plain_field("code", constraints=FieldConstraints(min_length=2, max_length=4))
        strategy = plan_field_strategy(field)
        self.assertEqual(strategy.provider, "pystr")
        self.assertEqual(strategy.arguments, {'min_chars': 2, 'max_chars': 4})

    def test_repeated_values_are_lists(self):
        strategy = plan_field_strategy(plain_field("payload", DeclaredType.JSON_ARRAY))
        self.assertEqual(strategy.repeat, 2)
        self.assertTrue(strategy.expression.startswith("[faker.pydict("))

    def test_unique_ignored_for_unsupported_categories(self):
        strategy = plan_field_strategy(plain_field("isActive", DeclaredType.BOOLEAN, unique=True))
        self.assertEqual(strategy.expression, "faker.pybool()")


@pytest.mark.parametrize(
    "name, declared_type, provider",
    [
        ("websiteUrl", DeclaredType.STRING, "url"),
        ("phone", DeclaredType.STRING, "numerify"),
        ("password", DeclaredType.STRING, "password"),
        ("firstName", DeclaredType.STRING, "first_name"),
        ("title", DeclaredType.STRING, "sentence"),
        ("content", DeclaredType.STRING, "paragraph"),
        ("slug", DeclaredType.STRING, "slug"),
        ("birthday", DeclaredType.DATE, "date_between"),
        ("publishedAt", DeclaredType.DATETIME, "date_time_between"),
        ("keywords", DeclaredType.STRING_ARRAY, "words"),
        ("settings", DeclaredType.JSON, "pydict"),
        ("status", DeclaredType.ENUM, "word"),
    ],
)
def test_provider_per_category(name, declared_type, provider):
    assert plan_field_strategy(plain_field(name, declared_type)).provider == provider


class TestMaterialize(unittest.TestCase):
    """Test running seed plans against Faker."""

    def setUp(self):
        user = build_model_descriptor("User", [
            plain_field("email", unique=True),
            plain_field("age", DeclaredType.NUMBER, constraints=FieldConstraints(min=18, max=99)),
            build_reference_field("mentor", "User", required=False),
        ])
        post = build_model_descriptor("Post", [
            plain_field("title"),
            build_reference_field("userId", "User"),
        ])
        self.plans = SeedingPlanner().plan([post, user], default_count=4)

    def test_rows_are_deterministic(self):
        self.assertEqual(
            materialize_seed_rows(self.plans, seed=7), materialize_seed_rows(self.plans, seed=7)
        )

    def test_rows_follow_plans(self):
        rows = materialize_seed_rows(self.plans, seed=1)

        self.assertEqual(list(rows), ["User", "Post"])
        self.assertEqual(len(rows["User"]), 4)

        user_ids = {row['id'] for row in rows["User"]}
        emails = [row['email'] for row in rows["User"]]
        self.assertEqual(len(set(emails)), len(emails))

        for row in rows["User"]:
            self.assertTrue(18 <= row['age'] <= 99)
            self.assertIn(row['mentor'], user_ids)
            self.assertEqual(len(row['id']), 24)

        for row in rows["Post"]:
            self.assertIn(row['userId'], user_ids)


class TestBoundedUniqueFields(unittest.TestCase):
    """Test unique numeric fields never ask Faker for more values than exist."""

    def test_count_capped_to_range(self):
        diagnostics = Diagnostics()
        user = build_model_descriptor("User", [
            plain_field("age", DeclaredType.NUMBER, unique=True,
                        constraints=FieldConstraints(min=1, max=5)),
        ])
        plans = SeedingPlanner().plan([user], diagnostics, default_count=20)

        self.assertEqual(plans[0].count, 5)
        self.assertEqual(diagnostics.codes(), [ViolationCode.SEED_COUNT_CAPPED])
        self.assertEqual(diagnostics.violations[0].path, "seeding.count")
        self.assertFalse(diagnostics.has_errors)

        ages = [row['age'] for row in materialize_seed_rows(plans, seed=3)["User"]]
        self.assertEqual(sorted(ages), [1, 2, 3, 4, 5])

    def test_default_age_range_caps_large_counts(self):
        diagnostics = Diagnostics()
        user = build_model_descriptor("User", [
            plain_field("age", DeclaredType.NUMBER, unique=True),
        ])
        plans = SeedingPlanner().plan([user], diagnostics, counts={"User": 200})

        self.assertEqual(plans[0].count, 151)
        self.assertEqual(diagnostics.violations[0].path, "seeding.counts.User")
        self.assertEqual(diagnostics.violations[0].subject, "User")

    def test_count_within_range_is_kept(self):
        diagnostics = Diagnostics()
        user = build_model_descriptor("User", [
            plain_field("age", DeclaredType.NUMBER, unique=True),
            plain_field("email", unique=True),
        ])
        plans = SeedingPlanner().plan([user], diagnostics, default_count=50)

        self.assertEqual(plans[0].count, 50)
        self.assertEqual(diagnostics.violations, [])

    def test_same_range_in_two_models(self):
        """Test each model gets the full range of a unique field."""
        models = [
            build_model_descriptor(name, [
                plain_field("age", DeclaredType.NUMBER, unique=True,
                            constraints=FieldConstraints(min=1, max=3)),
            ])
            for name in ("Cat", "Dog")
        ]
        plans = SeedingPlanner().plan(models, default_count=3)
        rows = materialize_seed_rows(plans, seed=5)

        for name in ("Cat", "Dog"):
            self.assertEqual(sorted(row['age'] for row in rows[name]), [1, 2, 3])


class TestFractionalBounds(unittest.TestCase):
    """Test numeric fields whose bounds are not whole numbers."""

    def test_fractional_bounds_use_floats(self):
        field = plain_field(
            "weight", DeclaredType.NUMBER, constraints=FieldConstraints(min=0.1, max=0.9)
        )
        strategy = plan_field_strategy(field)

        self.assertEqual(strategy.provider, "pyfloat")
        self.assertEqual(
            strategy.arguments, {'min_value': 0.1, 'max_value': 0.9, 'right_digits': 2}
        )

        plans = SeedingPlanner().plan(
            [build_model_descriptor("Parcel", [field])], default_count=10
        )
        for row in materialize_seed_rows(plans, seed=11)["Parcel"]:
            self.assertTrue(0.1 <= row['weight'] <= 0.9)

    def test_whole_float_bounds_stay_integers(self):
        field = plain_field(
            "weight", DeclaredType.NUMBER, constraints=FieldConstraints(min=1.0, max=10.0)
        )
        self.assertEqual(
            plan_field_strategy(field).expression, "faker.random_int(min=1, max=10)"
        )

    def test_single_fractional_value(self):
        field = plain_field(
            "weight", DeclaredType.NUMBER, constraints=FieldConstraints(min=0.5, max=0.5)
        )
        strategy = plan_field_strategy(field)
        self.assertEqual(strategy.provider, "random_element")
        self.assertEqual(strategy.arguments, {'elements': [0.5]})


class TestCycleReporting(unittest.TestCase):
    """Test cycle warnings name only the models in each cycle."""

    def test_dependent_of_cycle_is_not_listed(self):
        diagnostics = Diagnostics()
        models = [model("Author", "Book"), model("Book", "Author"), model("Review", "Author")]
        ordered = SeedingPlanner().order_models(models, diagnostics)

        self.assertEqual([m.name for m in ordered], ["Author", "Book", "Review"])
        self.assertEqual(len(diagnostics.violations), 1)
        self.assertEqual(diagnostics.violations[0].subject, "Author, Book")
        self.assertNotIn("Review", diagnostics.violations[0].message)

    def test_one_warning_per_cycle(self):
        diagnostics = Diagnostics()
        models = [
            model("Egg", "Hen"), model("Left", "Right"), model("Hen", "Egg"), model("Right", "Left"),
        ]
        SeedingPlanner().order_models(models, diagnostics)

        self.assertEqual(
            [v.subject for v in diagnostics.violations], ["Egg, Hen", "Left, Right"]
        )

    def test_three_model_cycle(self):
        cycles = find_reference_cycles(
            ["A", "B", "C", "D"], {"A": {"B"}, "B": {"C"}, "C": {"A"}, "D": {"A"}}
        )
        self.assertEqual(cycles, [["A", "B", "C"]])
