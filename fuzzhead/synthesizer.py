"""Synthesize argument values from parameter type descriptors."""

import importlib.util
import inspect
import logging
import random
import string
from dataclasses import dataclass
from typing import Any, Callable

from fuzzhead.compiler import ModuleExports
from fuzzhead.models import UNSUPPORTED, MockValue, TypeDescriptor, TypeKind
from fuzzhead.report import RunReport

logger = logging.getLogger(__name__)

STRING_LENGTH = 5
STRING_ALPHABET = string.ascii_lowercase + string.digits
NUMBER_UPPER_BOUND = 1000

Generator = Callable[[], Any]


class MockValueSynthesizer:
    """Produce type-plausible values for declared parameter types.

    Primitives are generated directly. Named types are looked up in a
    registry of generator functions; anything without a generator maps to
    the UNSUPPORTED sentinel. Never raises.
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()
        self._registry: dict[str, Generator] = {}

    def register(self, type_name: str, generator: Generator) -> None:
        """Register a zero-argument generator for a named type."""
        self._registry[type_name] = generator
        logger.debug(f"Registered generator for {type_name}")

    def has_generator(self, type_name: str) -> bool:
        return type_name in self._registry

    @property
    def registered_types(self) -> list[str]:
        return list(self._registry)

    def generate(self, descriptor: TypeDescriptor) -> MockValue:
        return MockValue(descriptor, self._value_for(descriptor))

    def _value_for(self, descriptor: TypeDescriptor) -> Any:
        if descriptor.kind is TypeKind.STRING:
            return "".join(self._rng.choices(STRING_ALPHABET, k=STRING_LENGTH))
        if descriptor.kind is TypeKind.NUMBER:
            return self._rng.randrange(NUMBER_UPPER_BOUND)
        if descriptor.kind is TypeKind.BOOLEAN:
            return self._rng.random() > 0.5
        if descriptor.kind is TypeKind.NAMED:
            generator = self._registry.get(descriptor.name or "")
            if generator is None:
                return UNSUPPORTED
            try:
                return generator()
            except (Exception, SystemExit) as e:
                logger.warning(f"Generator for {descriptor.name} failed: {e!r}")
                return UNSUPPORTED
        return UNSUPPORTED


@dataclass(frozen=True)
class RegistrationRule:
    """Conditionally register generators once a module is loaded.

    Attributes:
        name: Human-readable rule name
        applies: Precondition evaluated against the loaded module's exports
        install: Registers generators; returns the type names it registered
    """

    name: str
    applies: Callable[[ModuleExports], bool]
    install: Callable[[ModuleExports, MockValueSynthesizer], list[str]]


def apply_rules(
    rules: list[RegistrationRule],
    exports: ModuleExports,
    synthesizer: MockValueSynthesizer,
    report: RunReport,
    reserved: set[str] | None = None,
) -> list[str]:
    """Evaluate each rule once, in order, registering generators.

    A rule that raises is reported as a warning and does not stop the
    remaining rules.

    Args:
        rules: Rules to evaluate
        exports: Loaded module's exports
        synthesizer: Registry to install generators into
        report: Transcript for this run
        reserved: Class names rules must not see, such as the target classes,
            which are only ever instantiated by the harness

    Returns:
        All type names registered
    """
    if reserved:
        exports = exports.without(reserved)
    registered = []
    for rule in rules:
        try:
            if not rule.applies(exports):
                continue
            names = rule.install(exports, synthesizer)
        except Exception as e:
            report.warning(f"Registration rule '{rule.name}' failed", error=str(e))
            report.line(f"⚠️  Warning: rule '{rule.name}' failed: {e}")
            continue
        for type_name in names:
            report.line(f"   - Registered custom mock generator for type '{type_name}'.")
        registered.extend(names)
    return registered


# Zero-argument factories


def _has_zero_arg_classes(exports: ModuleExports) -> bool:
    return bool(exports.zero_arg_classes())


def _install_zero_arg_factories(
    exports: ModuleExports, synthesizer: MockValueSynthesizer
) -> list[str]:
    names = []
    for name, cls in exports.zero_arg_classes().items():
        if synthesizer.has_generator(name):
            continue
        synthesizer.register(name, cls)
        names.append(name)
    return names


# Key holders: classes built around a public key


def _accepts_public_key(cls: type) -> bool:
    try:
        parameters = inspect.signature(cls).parameters
    except (TypeError, ValueError):
        return False
    return "public_key" in parameters


def _key_holder_classes(exports: ModuleExports) -> dict[str, type]:
    return {
        name: cls
        for name, cls in exports.local_classes().items()
        if _accepts_public_key(cls)
    }


def _crypto_available() -> bool:
    return importlib.util.find_spec("cryptography") is not None


def _has_key_holders(exports: ModuleExports) -> bool:
    return _crypto_available() and bool(_key_holder_classes(exports))


def _install_key_holders(
    exports: ModuleExports, synthesizer: MockValueSynthesizer
) -> list[str]:
    from cryptography.hazmat.primitives.asymmetric import ec

    def make_generator(cls):
        def generate():
            key = ec.generate_private_key(ec.SECP256K1())
            return cls(public_key=key.public_key())

        return generate

    names = []
    for name, cls in _key_holder_classes(exports).items():
        if synthesizer.has_generator(name):
            continue
        synthesizer.register(name, make_generator(cls))
        names.append(name)
    return names


DEFAULT_RULES = [
    RegistrationRule(
        name="key holders",
        applies=_has_key_holders,
        install=_install_key_holders,
    ),
    RegistrationRule(
        name="zero-argument factories",
        applies=_has_zero_arg_classes,
        install=_install_zero_arg_factories,
    ),
]
