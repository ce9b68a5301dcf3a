"""Runtime markers for code under fuzz.

Discovery is purely lexical, so these objects only exist to give user code
something real to import. Subclass ``FuzzTarget`` and decorate methods with
``fuzzable`` to opt them in.
"""


class FuzzTarget:
    """Base class for classes whose fuzzable methods should be exercised."""


def fuzzable(func):
    """Mark a method as safe to call with synthesized arguments."""
    func.__fuzzable__ = True
    return func
