"""
Structural Matcher.

Syntax-tree recognizer for the three constructs the structural rewriter
handles:

- Kernel launches: `callee<<<grid, block[, shmem[, stream]]>>>(args)`.
- Extern shared incomplete arrays: `extern __shared__ T name[];`.
- Calls to functions declared with an execution-space attribute in the
  file, plus every name of the device-function rule table (treated as
  `__device__`).

It walks the tree-sitter tree of the file and binds the syntax nodes of
`cuda_hipify.frontend.nodes`. Macro bodies are opaque to it. It does not
type-check; callees are resolved by name.
"""

from typing import Dict, FrozenSet, List, Optional

from tree_sitter import Node

from cuda_hipify.frontend.nodes import (
  ATTR_DEVICE,
  ATTR_GLOBAL,
  ATTR_HOST,
  ATTR_SHARED,
  CallExpr,
  Expr,
  FunctionDecl,
  KernelLaunchExpr,
  MatchResult,
  QualType,
  SourceLocation,
  SourceRange,
  VarDecl,
)
from cuda_hipify.frontend.syntax import SourceTree, children_between, walk

EXECUTION_SPACES = {"__global__": ATTR_GLOBAL, "__device__": ATTR_DEVICE, "__host__": ATTR_HOST}

BUILTIN_TYPE_WORDS = frozenset(
  {
    "bool",
    "_Bool",
    "char",
    "wchar_t",
    "char8_t",
    "char16_t",
    "char32_t",
    "short",
    "int",
    "long",
    "signed",
    "unsigned",
    "float",
    "double",
    "__fp16",
    "_Float16",
    "__bf16",
    "__int128",
  }
)
CV_QUALIFIERS = frozenset({"const", "volatile", "__restrict__", "__restrict", "restrict"})

_FUNCTION_NODES = ("function_definition", "declaration", "field_declaration")
# Declarator wrappers between a declaration and its function declarator.
_DECLARATOR_WRAPPERS = ("pointer_declarator", "reference_declarator", "attributed_declarator", "parenthesized_declarator")
# Callee spellings that carry a plain, qualified or templated name.
_NAMED_CALLEES = ("identifier", "qualified_identifier", "template_function", "field_identifier")


def spell_type(text: str) -> str:
  """Spells a type with single blanks between words: `unsigned  long` -> `unsigned long`."""
  return " ".join(text.split())


def leaf_texts(tree: SourceTree, node: Node) -> List[str]:
  return [tree.text_of(n) for n in walk(node) if not n.children]


class StructuralMatcher:
  """
  Produces `MatchResult` events for one file.
  """

  def __init__(self, tree: SourceTree, device_functions: FrozenSet[str] = frozenset()):
    """
    Args:
        tree: The parsed file.
        device_functions: Names always treated as `__device__` functions.
    """
    self.tree = tree
    self.device_functions = device_functions
    self.declarations: Dict[str, FunctionDecl] = {}
    self._collect_declarations()

  def matches(self) -> List[MatchResult]:
    """
    Finds every construct of interest.

    Returns:
        List[MatchResult]: One event per construct, in file order.
    """
    found: List[MatchResult] = []
    for node in walk(self.tree.root):
      if node.type == "declaration":
        var = self._shared_array(node)
        if var is not None:
          found.append(MatchResult(shared_var=var))
      elif node.type in ("call_expression", "kernel_call_expression"):
        launch = self._kernel_launch(node)
        if launch is not None:
          found.append(MatchResult(kernel_launch=launch))
          continue
        call = self._device_call(node)
        if call is not None:
          found.append(MatchResult(device_call=call))
    found.sort(key=lambda m: m.offset)
    return found

  # --- Declarations ---

  def _collect_declarations(self) -> None:
    for node in walk(self.tree.root):
      if node.type not in _FUNCTION_NODES:
        continue
      declarator = self._function_declarator(node)
      if declarator is None:
        continue
      name_node = declarator.child_by_field_name("declarator")
      if name_node is None:
        continue

      outer = node.child_by_field_name("declarator")
      specifiers = [c for c in node.children if c != outer and c.type != "compound_statement"]
      words = [w for child in specifiers for w in leaf_texts(self.tree, child)]
      attrs = frozenset(EXECUTION_SPACES[w] for w in words if w in EXECUTION_SPACES)
      if not attrs:
        continue

      name = self._unqualified(name_node)
      is_template = node.parent is not None and node.parent.type == "template_declaration"
      known = self.declarations.get(name)
      if known is not None:
        attrs = attrs | known.attributes
        is_template = is_template or known.is_template_instantiation
      self.declarations[name] = FunctionDecl(name=name, attributes=attrs, is_template_instantiation=is_template)

  def _function_declarator(self, node: Node) -> Optional[Node]:
    declarator = node.child_by_field_name("declarator")
    while declarator is not None and declarator.type in _DECLARATOR_WRAPPERS:
      inner = declarator.child_by_field_name("declarator")
      if inner is None and declarator.named_children:
        inner = declarator.named_children[-1]
      declarator = inner
    if declarator is None or declarator.type != "function_declarator":
      return None
    return declarator

  def _unqualified(self, node: Node) -> str:
    """`kern` for `kern`, `ns::kern`, `kern<float>` and `ns::kern<T>`."""
    while node.type in ("qualified_identifier", "template_function", "template_method"):
      inner = node.child_by_field_name("name")
      if inner is None:
        break
      node = inner
    return self.tree.text_of(node)

  def _has_template_args(self, node: Node) -> bool:
    while node.type == "qualified_identifier":
      inner = node.child_by_field_name("name")
      if inner is None:
        return False
      node = inner
    return node.type in ("template_function", "template_method")

  # --- Kernel launches ---

  def _launch_syntax(self, node: Node) -> Optional[Node]:
    """The node holding the `<<< ... >>>` tokens of a launch, if `node` is one."""
    for child in node.children:
      if child.type == "kernel_call_syntax":
        return child
      if not child.is_named and child.type == "<<<":
        return node
    return None

  def _kernel_launch(self, node: Node) -> Optional[KernelLaunchExpr]:
    syntax = self._launch_syntax(node)
    if syntax is None:
      return None
    callee_node = node.child_by_field_name("function")
    if callee_node is None and node.named_children:
      callee_node = node.named_children[0]
    args_node = node.child_by_field_name("arguments")
    if callee_node is None or args_node is None or callee_node == syntax:
      return None

    callee_decl = self._launch_callee(callee_node)
    config = [self._expr(n) for n in children_between(syntax, "<<<", ">>>")]
    if len(config) >= 2:
      config += [Expr.default_arg() for _ in range(4 - len(config))]
    args = [self._expr(n) for n in args_node.named_children if n.type != "comment"]

    return KernelLaunchExpr(
      range=SourceRange.of(*self.tree.span(node)),
      callee=self._expr(callee_node),
      callee_decl=callee_decl,
      config=config,
      args=args,
    )

  def _launch_callee(self, callee: Node) -> Optional[FunctionDecl]:
    if callee.type not in _NAMED_CALLEES:
      # (*ptr)<<<...>>>: nothing to resolve by name.
      return None
    name = self._unqualified(callee)
    has_template_args = self._has_template_args(callee)

    known = self.declarations.get(name)
    if known is not None:
      return FunctionDecl(
        name=name,
        attributes=known.attributes,
        is_template_instantiation=known.is_template_instantiation or has_template_args,
      )
    return FunctionDecl(name=name, attributes=frozenset({ATTR_GLOBAL}), is_template_instantiation=has_template_args)

  # --- Shared arrays ---

  def _shared_array(self, node: Node) -> Optional[VarDecl]:
    declarators = node.children_by_field_name("declarator")
    if len(declarators) != 1 or declarators[0].type != "array_declarator":
      return None
    array = declarators[0]
    name_node = array.child_by_field_name("declarator")
    if array.child_by_field_name("size") is not None or name_node is None or name_node.type != "identifier":
      return None

    specifiers = [c for c in node.children if c != array and c.type != "comment"]
    words = [w for child in specifiers for w in leaf_texts(self.tree, child)]
    if "__shared__" not in words:
      return None

    type_node = node.child_by_field_name("type")
    if type_node is None:
      return None
    qualifiers = [self.tree.text_of(c) for c in node.children if c.type == "type_qualifier"]
    spelling = spell_type(" ".join(qualifiers + [self.tree.text_of(type_node)]))
    type_words = [w for w in spelling.split() if w not in CV_QUALIFIERS]
    element = QualType(
      spelling=spelling,
      is_builtin=bool(type_words) and all(w in BUILTIN_TYPE_WORDS for w in type_words),
    )
    return VarDecl(
      name=self.tree.text_of(name_node),
      outer_begin=SourceLocation.at(self.tree.start(node)),
      type_end=SourceLocation.at(self.tree.end(array) - 1),
      type=QualType(spelling=f"{element.spelling} []", is_incomplete_array=True, element_type=element),
      has_external_linkage="extern" in words,
      attributes=frozenset({ATTR_SHARED}),
    )

  # --- Device calls ---

  def _device_call(self, node: Node) -> Optional[CallExpr]:
    function = node.child_by_field_name("function")
    if function is None or function.type not in ("identifier", "qualified_identifier"):
      return None
    name_node = function
    while name_node.type == "qualified_identifier":
      inner = name_node.child_by_field_name("name")
      if inner is None:
        return None
      name_node = inner
    if name_node.type != "identifier":
      return None

    name = self.tree.text_of(name_node)
    decl = self.declarations.get(name)
    if decl is None:
      if name not in self.device_functions:
        return None
      decl = FunctionDecl(name=name, attributes=frozenset({ATTR_DEVICE}))
    return CallExpr(
      range=SourceRange.of(*self.tree.span(node)),
      callee_decl=decl,
      callee_location=SourceLocation.at(self.tree.start(name_node)),
    )

  def _expr(self, node: Node) -> Expr:
    return Expr(SourceRange.of(*self.tree.span(node)))

