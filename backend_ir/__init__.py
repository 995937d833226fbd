"""
Backend IR: lowers a declarative backend project configuration into a
fully resolved intermediate representation for code emission.
"""

__version__ = "1.0.0"
