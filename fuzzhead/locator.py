"""Discover fuzz target classes and their fuzzable methods in a syntax tree.

Matching is lexical: a class qualifies when the source text of one of its
base-list entries equals a configured marker name, and a method qualifies
when the source text of one of its decorators starts with the configured
prefix. Only the immediate base list is inspected; renamed or re-exported
bases are missed.
"""

import ast
import logging

from fuzzhead.config import LocatorConfig
from fuzzhead.models import (
    CallableMethod,
    CompiledProgram,
    Parameter,
    TargetClass,
    TypeDescriptor,
)
from fuzzhead.report import RunReport

logger = logging.getLogger(__name__)

PRIMITIVE_ANNOTATIONS = {
    "str": TypeDescriptor.string(),
    "int": TypeDescriptor.number(),
    "float": TypeDescriptor.number(),
    "bool": TypeDescriptor.boolean(),
}

# Marks a name bound by an import; such names cannot be resolved locally.
_IMPORTED = object()


def locate_targets(
    program: CompiledProgram,
    report: RunReport,
    config: LocatorConfig | None = None,
) -> list[TargetClass]:
    """Find target classes in export order.

    Args:
        program: A compiled program with a syntax tree
        report: Transcript for this run
        config: Marker names (defaults when omitted)

    Returns:
        TargetClass entries in export order, each with its fuzzable methods
        in declaration order
    """
    config = config or LocatorConfig()
    if program.tree is None:
        raise ValueError(f"{program.unit.path} has no syntax tree")

    source = program.unit.text
    targets: list[TargetClass] = []

    for declaration in target_declarations(program, config, report):
        target = TargetClass(name=declaration.name, line=declaration.lineno)
        for member in declaration.body:
            if not isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef)):
                continue
            if has_fuzzable_decorator(member, source, config.method_prefix):
                target.methods.append(build_method(member, source, target.name))

        report.line(f"✅ Found fuzz target: {target.name}")
        report.info(
            f"Found fuzz target {target.name}",
            methods=[m.name for m in target.methods],
        )
        targets.append(target)

    if not targets:
        report.line(
            f"No fuzz targets found (no exported class extends "
            f"{' or '.join(config.base_markers)})"
        )
        report.info("No fuzz targets found", path=program.unit.path)

    logger.info(f"Located {len(targets)} targets in {program.unit.path}")
    return targets


def target_declarations(
    program: CompiledProgram,
    config: LocatorConfig | None = None,
    report: RunReport | None = None,
) -> list[ast.ClassDef]:
    """Exported class declarations that qualify as targets, in export order.

    Each declaration appears once even when several exports reach it.
    """
    config = config or LocatorConfig()
    if program.tree is None:
        raise ValueError(f"{program.unit.path} has no syntax tree")

    source = program.unit.text
    bindings = collect_bindings(program.tree)
    declarations = []
    seen: set[int] = set()

    for name in exported_names(program.tree, bindings, report):
        declaration = resolve_class(name, bindings)
        if declaration is None or id(declaration) in seen:
            continue
        seen.add(id(declaration))

        if not is_target_class(declaration, source, config.base_markers):
            logger.debug(f"Skipping {declaration.name}: no target base")
            continue
        declarations.append(declaration)

    return declarations


def target_class_names(
    program: CompiledProgram, config: LocatorConfig | None = None
) -> set[str]:
    """Declared names of the target classes. Writes nothing to a transcript."""
    return {declaration.name for declaration in target_declarations(program, config)}


def collect_bindings(tree: ast.Module) -> dict[str, object]:
    """Map each top-level name to the node it is bound to.

    Keys keep the order in which names were first bound; values reflect the
    last binding.
    """
    bindings: dict[str, object] = {}

    for node in tree.body:
        if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
            bindings[node.name] = node
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                if isinstance(target, ast.Name):
                    bindings[target.id] = node.value
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            if isinstance(node.target, ast.Name):
                bindings[node.target.id] = node.value
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            for alias in node.names:
                if alias.name == "*":
                    continue
                bound = alias.asname or alias.name.split(".")[0]
                bindings[bound] = _IMPORTED

    return bindings


def exported_names(
    tree: ast.Module,
    bindings: dict[str, object],
    report: RunReport | None = None,
) -> list[str]:
    """Names exported by the module: ``__all__`` if declared, else public names.

    An ``__all__`` that is not a literal list or tuple of strings cannot be
    read from the tree; public names are used instead and a warning is
    recorded.
    """
    declared: list[str] | None = None
    dynamic = False

    for node in tree.body:
        if isinstance(node, ast.Assign):
            if not any(_is_dunder_all(t) for t in node.targets):
                continue
            value, extends = node.value, False
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            if not _is_dunder_all(node.target):
                continue
            value, extends = node.value, False
        elif isinstance(node, ast.AugAssign):
            if not _is_dunder_all(node.target):
                continue
            value, extends = node.value, True
        else:
            continue

        names = _string_sequence(value)
        if names is None:
            dynamic = True
        elif extends:
            declared = (declared or []) + names
        else:
            declared, dynamic = names, False

    public = [name for name in bindings if not name.startswith("_")]
    if dynamic:
        logger.warning("__all__ is not a literal; falling back to public names")
        if report is not None:
            report.warning("__all__ is not a literal list of names", exported=public)
            report.line("⚠️  __all__ could not be read statically, using public names")
        return public
    if declared is not None:
        return declared
    return public


def _is_dunder_all(target: ast.expr) -> bool:
    return isinstance(target, ast.Name) and target.id == "__all__"


def _string_sequence(node: ast.expr) -> list[str] | None:
    if not isinstance(node, (ast.List, ast.Tuple)):
        return None
    if not all(isinstance(elt, ast.Constant) and isinstance(elt.value, str) for elt in node.elts):
        return None
    return [
        elt.value
        for elt in node.elts
        if isinstance(elt, ast.Constant) and isinstance(elt.value, str)
    ]


def resolve_class(name: str, bindings: dict[str, object]) -> ast.ClassDef | None:
    """Follow ``Alias = Name`` chains to a class definition in this module."""
    visited = set()
    node = bindings.get(name)
    while isinstance(node, ast.Name) and node.id not in visited:
        visited.add(node.id)
        node = bindings.get(node.id)
    return node if isinstance(node, ast.ClassDef) else None


def is_target_class(
    declaration: ast.ClassDef, source: str, markers: tuple[str, ...]
) -> bool:
    """True if any base-list entry's source text equals a marker name."""
    for base in declaration.bases:
        text = ast.get_source_segment(source, base) or ast.unparse(base)
        if text.strip() in markers:
            return True
    return False


def has_fuzzable_decorator(
    member: ast.FunctionDef | ast.AsyncFunctionDef, source: str, prefix: str
) -> bool:
    for decorator in member.decorator_list:
        text = ast.get_source_segment(source, decorator) or ast.unparse(decorator)
        if text.strip().startswith(prefix):
            return True
    return False


def _decorator_names(member: ast.FunctionDef | ast.AsyncFunctionDef) -> set[str]:
    names = set()
    for decorator in member.decorator_list:
        if isinstance(decorator, ast.Name):
            names.add(decorator.id)
    return names


def build_method(
    member: ast.FunctionDef | ast.AsyncFunctionDef, source: str, owner: str
) -> CallableMethod:
    """Describe a method's parameters from their annotations."""
    args = member.args
    positional = list(args.posonlyargs) + list(args.args)
    if positional and "staticmethod" not in _decorator_names(member):
        positional = positional[1:]  # self / cls

    parameters = [
        Parameter(arg.arg, describe_annotation(arg.annotation, source))
        for arg in positional
    ]
    parameters += [
        Parameter(arg.arg, describe_annotation(arg.annotation, source), keyword_only=True)
        for arg in args.kwonlyargs
    ]
    return CallableMethod(
        name=member.name,
        parameters=parameters,
        owner=owner,
        is_async=isinstance(member, ast.AsyncFunctionDef),
    )


def describe_annotation(annotation: ast.expr | None, source: str) -> TypeDescriptor:
    """Classify a parameter annotation.

    ``str`` maps to string, ``int``/``float`` to number, ``bool`` to
    boolean; a missing annotation is unknown and anything else is named by
    its source text. String forward references are unwrapped first.
    """
    if annotation is None:
        return TypeDescriptor.unknown()

    if isinstance(annotation, ast.Constant) and isinstance(annotation.value, str):
        text = annotation.value.strip()
        try:
            inner = ast.parse(text, mode="eval").body
        except SyntaxError:
            return TypeDescriptor.named(text) if text else TypeDescriptor.unknown()
        return describe_annotation(inner, text)

    if isinstance(annotation, ast.Name) and annotation.id in PRIMITIVE_ANNOTATIONS:
        return PRIMITIVE_ANNOTATIONS[annotation.id]

    text = ast.get_source_segment(source, annotation) or ast.unparse(annotation)
    return TypeDescriptor.named(text.strip())
