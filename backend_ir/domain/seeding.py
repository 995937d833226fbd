"""
Seed data planning for Backend IR.

Orders the relationship-resolved models so that every model is seeded after
the models it references, and picks a Faker provider call for every plain
field. ``materialize_seed_rows`` runs a plan against a seeded Faker
instance to produce sample rows.
"""

import heapq
import logging
from typing import Any, Dict, List, Optional, Set

from faker import Faker

from ..constants import DefaultConfig, SeedingDefaults
from ..validators import Diagnostics, ViolationCode
from .heuristics import FieldCategory, classify_field
from .models import (
    BindingArity,
    FieldDescriptor,
    FieldStrategy,
    ModelDescriptor,
    RelationshipBinding,
    SeedPlan,
)

logger = logging.getLogger(__name__)


# Categories whose generator takes no arguments
SIMPLE_PROVIDERS: Dict[FieldCategory, str] = {
    FieldCategory.EMAIL: "email",
    FieldCategory.URL: "url",
    FieldCategory.FIRST_NAME: "first_name",
    FieldCategory.LAST_NAME: "last_name",
    FieldCategory.NAME: "name",
    FieldCategory.SLUG: "slug",
    FieldCategory.ADDRESS: "address",
    FieldCategory.COLOR: "hex_color",
    FieldCategory.FLAG: "pybool",
}

# Categories that can honour a uniqueness requirement
UNIQUE_CAPABLE: Set[FieldCategory] = {
    FieldCategory.EMAIL,
    FieldCategory.URL,
    FieldCategory.PHONE,
    FieldCategory.FIRST_NAME,
    FieldCategory.LAST_NAME,
    FieldCategory.NAME,
    FieldCategory.TITLE,
    FieldCategory.SLUG,
    FieldCategory.TEXT,
    FieldCategory.AGE,
    FieldCategory.QUANTITY,
    FieldCategory.NUMBER,
    FieldCategory.PERCENT,
    FieldCategory.REFERENCE,
}

OBJECT_ID_TEMPLATE = "^" * 24

# Default numeric ranges when a field carries no min/max
NUMBER_RANGES: Dict[FieldCategory, tuple] = {
    FieldCategory.AGE: (0, 150),
    FieldCategory.PRICE: (0, 999999.99),
    FieldCategory.QUANTITY: (0, 999999),
    FieldCategory.RATING: (0, 5),
    FieldCategory.PERCENT: (0, 100),
    FieldCategory.NUMBER: (0, 1000000),
}


def _bounds(field: FieldDescriptor, category: FieldCategory):
    low, high = NUMBER_RANGES[category]
    if field.constraints.min is not None:
        low = field.constraints.min
    if field.constraints.max is not None:
        high = field.constraints.max
    return low, high


def _is_whole(value) -> bool:
    return float(value).is_integer()


def _number_strategy(field: FieldDescriptor, category: FieldCategory) -> FieldStrategy:
    low, high = _bounds(field, category)

    if category in (FieldCategory.PRICE, FieldCategory.RATING):
        right_digits = 2 if category == FieldCategory.PRICE else 1
        return FieldStrategy(
            field.name,
            "pyfloat",
            {'min_value': float(low), 'max_value': float(high), 'right_digits': right_digits},
        )

    # Fractional bounds may leave no integer in range
    if not (_is_whole(low) and _is_whole(high)):
        if low == high:
            return FieldStrategy(field.name, "random_element", {'elements': [float(low)]})
        return FieldStrategy(
            field.name,
            "pyfloat",
            {'min_value': float(low), 'max_value': float(high), 'right_digits': 2},
        )

    return FieldStrategy(
        field.name,
        "random_int",
        {'min': int(low), 'max': int(high)},
    )


def strategy_capacity(strategy: FieldStrategy) -> Optional[int]:
    """
    Number of distinct values a bounded numeric strategy can produce.

    None means the provider is treated as unbounded.
    """
    arguments = strategy.arguments
    if strategy.provider == "random_int":
        return max(arguments['max'] - arguments['min'] + 1, 0)
    if strategy.provider == "pyfloat":
        steps = (arguments['max_value'] - arguments['min_value']) * 10 ** arguments['right_digits']
        return max(int(round(steps)) + 1, 0)
    return None


def _text_strategy(field: FieldDescriptor) -> FieldStrategy:
    max_length = field.constraints.max_length
    if max_length is not None and max_length < 5:
        # Faker's text() needs room for at least one word
        return FieldStrategy(
            field.name,
            "pystr",
            {'min_chars': field.constraints.min_length or 1, 'max_chars': max_length},
        )
    return FieldStrategy(field.name, "text", {'max_nb_chars': min(max_length or 255, 200)})


def plan_field_strategy(field: FieldDescriptor) -> FieldStrategy:
    """
    Choose the Faker provider call that fills one non-reference field.

    The choice uses the same name classification as field lowering, so an
    ``email`` field that validates with ``is-email`` is also seeded with
    email addresses; declared unique, its expression is
    ``faker.unique.email()``.
    """
    if field.constraints.enum_values:
        return FieldStrategy(
            field.name, "random_element", {'elements': list(field.constraints.enum_values)}
        )

    category = classify_field(field.name, field.declared_type)

    if category in SIMPLE_PROVIDERS:
        strategy = FieldStrategy(field.name, SIMPLE_PROVIDERS[category])
    elif category == FieldCategory.PHONE:
        strategy = FieldStrategy(field.name, "numerify", {'text': "+1##########"})
    elif category == FieldCategory.PASSWORD:
        strategy = FieldStrategy(field.name, "password", {'length': 12})
    elif category == FieldCategory.TITLE:
        strategy = FieldStrategy(field.name, "sentence", {'nb_words': 4})
    elif category == FieldCategory.DESCRIPTION:
        strategy = FieldStrategy(field.name, "paragraph", {'nb_sentences': 2})
    elif category == FieldCategory.TEXT:
        strategy = _text_strategy(field)
    elif category in NUMBER_RANGES:
        strategy = _number_strategy(field, category)
    elif category == FieldCategory.DATE:
        strategy = FieldStrategy(
            field.name, "date_between", {'start_date': "-5y", 'end_date': "today"}
        )
    elif category == FieldCategory.DATETIME:
        strategy = FieldStrategy(
            field.name, "date_time_between", {'start_date': "-5y", 'end_date': "now"}
        )
    elif category == FieldCategory.STRING_LIST:
        strategy = FieldStrategy(field.name, "words", {'nb': SeedingDefaults.STRING_ARRAY_SIZE})
    elif category == FieldCategory.OBJECT:
        strategy = FieldStrategy(
            field.name, "pydict", {'nb_elements': 3, 'value_types': ["str", "int"]}
        )
    elif category == FieldCategory.OBJECT_LIST:
        strategy = FieldStrategy(
            field.name,
            "pydict",
            {'nb_elements': 3, 'value_types': ["str", "int"]},
            repeat=SeedingDefaults.JSON_ARRAY_SIZE,
        )
    elif category == FieldCategory.REFERENCE:
        strategy = FieldStrategy(field.name, "hexify", {'text': OBJECT_ID_TEMPLATE})
    elif category == FieldCategory.REFERENCE_LIST:
        strategy = FieldStrategy(
            field.name,
            "hexify",
            {'text': OBJECT_ID_TEMPLATE},
            repeat=SeedingDefaults.REFERENCE_ARRAY_SIZE,
        )
    else:
        # Enum without values
        strategy = FieldStrategy(field.name, "word")

    if field.unique and category in UNIQUE_CAPABLE and strategy.repeat is None:
        strategy.unique = True
    return strategy


class SeedingPlanner:
    """
    Plans synthetic data for a resolved model set.

    Models are ordered with Kahn's algorithm; among models that are ready at
    the same time the one declared first goes first. Models caught in a
    reference cycle are appended in declaration order and the references
    that point forward are marked deferred.
    """

    def plan(
        self,
        models: List[ModelDescriptor],
        diagnostics: Optional[Diagnostics] = None,
        default_count: int = DefaultConfig.SEED_COUNT,
        counts: Optional[Dict[str, int]] = None,
    ) -> List[SeedPlan]:
        """
        Build one SeedPlan per model in a dependency-respecting order.

        Args:
            models: Relationship-resolved models in declaration order
            diagnostics: Collector for SEED_DEPENDENCY_CYCLE and SEED_COUNT_CAPPED warnings
            default_count: Rows per model unless overridden
            counts: Per-model row counts, keyed by resolved or declared name

        Returns:
            Seed plans sorted by ``order``
        """
        if diagnostics is None:
            diagnostics = Diagnostics()
        counts = counts or {}

        ordered = self.order_models(models, diagnostics)
        position = {model.name: index for index, model in enumerate(ordered)}

        plans = []
        for index, model in enumerate(ordered):
            count_key = next((k for k in (model.name, model.original_name) if k in counts), None)
            count = counts[count_key] if count_key else default_count
            plan = SeedPlan(model_name=model.name, order=index, count=count)

            for field in model.fields:
                if field.is_reference:
                    target = field.referenced_model
                    plan.relationship_bindings.append(
                        RelationshipBinding(
                            field_name=field.name,
                            target_model=target,
                            arity=BindingArity.ARRAY if field.is_array else BindingArity.ONE,
                            deferred=position.get(target, len(ordered)) >= index,
                        )
                    )
                elif field.name not in SeedingDefaults.AUTO_MANAGED_FIELDS:
                    plan.field_strategies.append(plan_field_strategy(field))

            self._cap_unique_count(plan, count_key, diagnostics)
            plans.append(plan)
            logger.debug(
                f"Seed plan #{index} {model.name}: {len(plan.field_strategies)} strategies, "
                f"{len(plan.relationship_bindings)} bindings"
            )

        logger.info(f"Planned seeding for {len(plans)} model(s)")
        return plans

    def _cap_unique_count(
        self,
        plan: SeedPlan,
        count_key: Optional[str],
        diagnostics: Diagnostics,
    ) -> None:
        """Lower the row count to what the narrowest unique field can supply."""
        limits = []
        for strategy in plan.field_strategies:
            capacity = strategy_capacity(strategy) if strategy.unique else None
            if capacity is not None:
                limits.append((capacity, strategy.field_name))
        if not limits:
            return

        capacity, field_name = min(limits)
        if plan.count <= capacity:
            return

        diagnostics.add_warning(
            f"seeding.counts.{count_key}" if count_key else "seeding.count",
            ViolationCode.SEED_COUNT_CAPPED,
            f"Unique field '{plan.model_name}.{field_name}' has only {capacity} distinct "
            f"value(s); seeding {capacity} of {plan.count} requested row(s)",
            suggestion="Widen the field's min/max or lower the count",
            subject=plan.model_name,
        )
        plan.count = capacity

    def order_models(
        self,
        models: List[ModelDescriptor],
        diagnostics: Optional[Diagnostics] = None,
    ) -> List[ModelDescriptor]:
        """
        Sort models so each comes after the models it references.

        Self references impose no ordering constraint.
        """
        if diagnostics is None:
            diagnostics = Diagnostics()

        declaration_index = {model.name: index for index, model in enumerate(models)}

        # dependencies[X] = models X references
        dependencies: Dict[str, Set[str]] = {
            model.name: {
                f.referenced_model
                for f in model.reference_fields
                if f.referenced_model != model.name and f.referenced_model in declaration_index
            }
            for model in models
        }
        dependents: Dict[str, List[str]] = {model.name: [] for model in models}
        for name, deps in dependencies.items():
            for dep in deps:
                dependents[dep].append(name)

        in_degree = {name: len(deps) for name, deps in dependencies.items()}
        ready = [declaration_index[name] for name, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        ordered: List[ModelDescriptor] = []
        while ready:
            model = models[heapq.heappop(ready)]
            ordered.append(model)
            for dependent in dependents[model.name]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, declaration_index[dependent])

        if len(ordered) != len(models):
            placed = {model.name for model in ordered}
            remaining = [model for model in models if model.name not in placed]
            for cycle in find_reference_cycles([m.name for m in remaining], dependencies):
                diagnostics.add_warning(
                    "models",
                    ViolationCode.SEED_DEPENDENCY_CYCLE,
                    f"Reference cycle between {', '.join(cycle)}; seeding them in "
                    "declaration order with forward references filled in a second pass",
                    suggestion="Make one reference in the cycle optional",
                    subject=", ".join(cycle),
                )
            # Models that only depend on a cycle follow it in declaration order
            ordered.extend(remaining)

        return ordered


def find_reference_cycles(
    names: List[str], dependencies: Dict[str, Set[str]]
) -> List[List[str]]:
    """
    Strongly connected components of more than one model (Tarjan).

    Each cycle lists its members in the order of ``names``; cycles are
    ordered by their first member.
    """
    rank = {name: index for index, name in enumerate(names)}
    index_of: Dict[str, int] = {}
    low_link: Dict[str, int] = {}
    stack: List[str] = []
    on_stack: Set[str] = set()
    cycles: List[List[str]] = []

    def visit(name: str) -> None:
        index_of[name] = low_link[name] = len(index_of)
        stack.append(name)
        on_stack.add(name)

        for dep in dependencies.get(name, ()):
            if dep not in rank:
                continue
            if dep not in index_of:
                visit(dep)
                low_link[name] = min(low_link[name], low_link[dep])
            elif dep in on_stack:
                low_link[name] = min(low_link[name], index_of[dep])

        if low_link[name] == index_of[name]:
            component = []
            while True:
                member = stack.pop()
                on_stack.discard(member)
                component.append(member)
                if member == name:
                    break
            if len(component) > 1:
                cycles.append(sorted(component, key=rank.get))

    for name in names:
        if name not in index_of:
            visit(name)

    return sorted(cycles, key=lambda cycle: rank[cycle[0]])


def _run_strategy(faker: Faker, strategy: FieldStrategy) -> Any:
    proxy = faker.unique if strategy.unique else faker
    provider = getattr(proxy, strategy.provider)
    if strategy.repeat is not None:
        return [provider(**strategy.arguments) for _ in range(strategy.repeat)]
    return provider(**strategy.arguments)


def materialize_seed_rows(
    plans: List[SeedPlan],
    seed: int = DefaultConfig.SEED_RANDOM_SEED,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Produce sample rows for every plan with a seeded Faker instance.

    Every row gets a generated ``id``. Reference fields are filled with ids
    of rows of the target model: immediate bindings in the first pass,
    deferred bindings once all rows exist. The same plans and seed always
    yield the same rows.

    Returns:
        Rows keyed by model name, in plan order
    """
    faker = Faker()
    faker.seed_instance(seed)

    rows: Dict[str, List[Dict[str, Any]]] = {}
    ordered_plans = sorted(plans, key=lambda p: p.order)

    def pick_ids(binding: RelationshipBinding) -> Any:
        ids = [row['id'] for row in rows.get(binding.target_model, [])]
        if binding.arity == BindingArity.ARRAY:
            if not ids:
                return []
            size = min(SeedingDefaults.REFERENCE_ARRAY_SIZE, len(ids))
            return faker.random_elements(elements=ids, length=size, unique=True)
        return faker.random_element(elements=ids) if ids else None

    for plan in ordered_plans:
        # Uniqueness holds per model
        faker.unique.clear()
        model_rows = []
        for _ in range(plan.count):
            row: Dict[str, Any] = {'id': faker.hexify(text=OBJECT_ID_TEMPLATE)}
            for strategy in plan.field_strategies:
                row[strategy.field_name] = _run_strategy(faker, strategy)
            for binding in plan.relationship_bindings:
                row[binding.field_name] = None if binding.deferred else pick_ids(binding)
            model_rows.append(row)
        rows[plan.model_name] = model_rows

    # Second pass: targets seeded later, cycles and self references
    for plan in ordered_plans:
        deferred = [b for b in plan.relationship_bindings if b.deferred]
        for row in rows[plan.model_name]:
            for binding in deferred:
                row[binding.field_name] = pick_ids(binding)

    logger.debug(f"Materialized {sum(len(r) for r in rows.values())} seed row(s)")
    return rows
