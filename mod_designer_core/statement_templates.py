"""
Statement templates for the mod code generator.

Each node type is rendered by a StatementTemplate registered in
TEMPLATE_REGISTRY.  A template either opens a block (event handlers, command
callbacks, conditionals, loops, scheduled callbacks) and wraps the code of the
node's descendants inside it, or emits a plain statement after which the
descendants continue at the same indentation level.

Adding a new node type
----------------------
1. Subclass StatementTemplate (plain statement) or BlockTemplate.
2. Register it:  register_template("myType", MyTemplate())

Types without a registered template fall back to PlaceholderTemplate, which
emits a comment and otherwise behaves like a plain statement.
"""

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence

from .models import Node
from .value_substitution import js_literal, quote, substitute


UNDEFINED = 'undefined'


def is_js_falsy(value) -> bool:
    """Whether JavaScript treats ``value`` as false: null, "", false, 0 or NaN."""
    if value is None or value is False or value == "":
        return True
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0 or value != value
    return False


class RenderContext:
    """Everything a template needs to render one node at one depth."""

    def __init__(self, node: Node, level: int, indent_size: int = 2,
                 scope: Optional[Callable[[], List[str]]] = None):
        self.node = node
        self.level = level
        self.indent_size = indent_size
        self._scope_fn = scope
        self._scope: Optional[List[str]] = None

    @property
    def params(self) -> Dict:
        return self.node.params or {}

    @property
    def indent(self) -> str:
        return " " * (self.level * self.indent_size)

    @property
    def scope(self) -> List[str]:
        if self._scope is None:
            self._scope = self._scope_fn() if self._scope_fn else []
        return self._scope

    def line(self, text: str) -> str:
        return self.indent + text

    def value(self, key: str, fallback: Optional[str] = None) -> str:
        """Parameter as a substituted expression: variable reference or literal."""
        raw = self.params.get(key)
        if fallback is not None and is_js_falsy(raw):
            raw = fallback
        if raw is None:
            return UNDEFINED
        return substitute(raw, self.scope)

    def expr(self, key: str, fallback: Optional[str] = None) -> str:
        """Parameter spliced verbatim as a JavaScript expression."""
        raw = self.params.get(key)
        if raw is None or raw == "":
            return fallback if fallback is not None else UNDEFINED
        if isinstance(raw, str):
            return raw
        return js_literal(raw)

    def custom_code_lines(self) -> List[str]:
        """Free-form node code, each non-blank line re-indented to this level."""
        if not self.node.custom_code:
            return []
        return [
            self.indent + line if line.strip() else ""
            for line in str(self.node.custom_code).split("\n")
        ]


@dataclass(frozen=True)
class Arg:
    """One call argument: ``value`` arguments are substituted, ``expr`` ones spliced."""
    key: str
    kind: str = 'value'
    fallback: Optional[str] = None

    def render(self, ctx: RenderContext) -> str:
        if self.kind == 'expr':
            return ctx.expr(self.key, self.fallback)
        return ctx.value(self.key, self.fallback)


def V(key: str, fallback: Optional[str] = None) -> Arg:
    return Arg(key, 'value', fallback)


def E(key: str, fallback: Optional[str] = None) -> Arg:
    return Arg(key, 'expr', fallback)


# ── Base templates ────────────────────────────────────────────────────────────

class StatementTemplate:
    """Plain statement: own lines, then custom code, then descendants."""

    opens_block = False

    def statement_lines(self, ctx: RenderContext) -> List[str]:
        raise NotImplementedError

    def render(self, ctx: RenderContext, children: List[str]) -> List[str]:
        lines = [ctx.line(text) for text in self.statement_lines(ctx)]
        lines.extend(ctx.custom_code_lines())
        lines.extend(children)
        return lines


class BlockTemplate(StatementTemplate):
    """Opens a construct and nests the descendants' code one level deeper."""

    opens_block = True

    def open_line(self, ctx: RenderContext) -> str:
        raise NotImplementedError

    def close_line(self, ctx: RenderContext) -> str:
        return "});"

    def render(self, ctx: RenderContext, children: List[str]) -> List[str]:
        return [ctx.line(self.open_line(ctx)), *children, ctx.line(self.close_line(ctx))]


class PlaceholderTemplate(StatementTemplate):
    """Used for node types without a registered template."""

    def statement_lines(self, ctx: RenderContext) -> List[str]:
        return [f"// Unknown node type: {ctx.node.type}"]


# ── Blocks ────────────────────────────────────────────────────────────────────

class EventTemplate(BlockTemplate):
    def __init__(self, event: str, param: str = ""):
        self.event = event
        self.param = param

    def open_line(self, ctx: RenderContext) -> str:
        return f"api.{self.event}(({self.param}) => {{"


class CommandTemplate(BlockTemplate):
    def open_line(self, ctx: RenderContext) -> str:
        name = ctx.params.get('name')
        if is_js_falsy(name):
            name = 'mycommand'
        return f"api.registerCommand({quote(str(name))}, (ctx, args) => {{"

    def close_line(self, ctx: RenderContext) -> str:
        perm_level = ctx.expr('permLevel', '0')
        player_only = ctx.expr('playerOnly', 'false')
        return f"}}, {perm_level}, {player_only});"


class ScheduleTemplate(BlockTemplate):
    def __init__(self, callee: str, key: str, fallback: str):
        self.callee = callee
        self.key = key
        self.fallback = fallback

    def open_line(self, ctx: RenderContext) -> str:
        return f"{self.callee}({ctx.expr(self.key, self.fallback)}, () => {{"


class IfTemplate(BlockTemplate):
    def open_line(self, ctx: RenderContext) -> str:
        return f"if ({ctx.expr('condition', 'true')}) {{"

    def close_line(self, ctx: RenderContext) -> str:
        return "}"


class ForEachTemplate(BlockTemplate):
    def open_line(self, ctx: RenderContext) -> str:
        return f"{ctx.expr('array', '[]')}.forEach(({ctx.expr('varName', 'item')}) => {{"


# ── Statements ────────────────────────────────────────────────────────────────

class CallTemplate(StatementTemplate):
    """``[const <assign> = ]<callee>(<args>);``"""

    def __init__(self, callee: str, args: Sequence[Arg] = (), assign: Optional[str] = None):
        self.callee = callee
        self.args = tuple(args)
        self.assign = assign

    def statement_lines(self, ctx: RenderContext) -> List[str]:
        call = f"{self.callee}({', '.join(arg.render(ctx) for arg in self.args)});"
        if self.assign:
            call = f"const {self.assign} = {call}"
        return [call]


class FindEntitiesTemplate(StatementTemplate):
    def statement_lines(self, ctx: RenderContext) -> List[str]:
        unit = " " * ctx.indent_size
        center = (
            f"center: {{ x: {ctx.expr('x')}, y: {ctx.expr('y')}, z: {ctx.expr('z')}, "
            f"dimensionId: {ctx.value('dimension')} }},"
        )
        radius = f"radius: {ctx.expr('radius')}"
        if ctx.params.get('type'):
            radius += f", typeId: {ctx.value('type')}"
        return [
            "const entities = api.entities.find({",
            unit + center,
            unit + radius,
            "});",
        ]


# ── Registry ──────────────────────────────────────────────────────────────────

_COORDS = (E('x'), E('y'), E('z'))
_BOX = (E('x1'), E('y1'), E('z1'), E('x2'), E('y2'), E('z2'))

TEMPLATE_REGISTRY: Dict[str, StatementTemplate] = {
    # Events
    "onServerTick": EventTemplate("onServerTick"),
    "onPlayerJoin": EventTemplate("onPlayerJoin", "player"),
    "onPlayerLeave": EventTemplate("onPlayerLeave", "player"),
    "onPlayerTick": EventTemplate("onPlayerTick", "player"),
    "onChatMessage": EventTemplate("onChatMessage", "evt"),
    "onBlockBreak": EventTemplate("onBlockBreak", "evt"),
    "onBlockPlace": EventTemplate("onBlockPlace", "evt"),
    "onUseBlock": EventTemplate("onUseBlock", "evt"),
    "onUseItem": EventTemplate("onUseItem", "evt"),
    "onAttackEntity": EventTemplate("onAttackEntity", "evt"),
    "onEntityDamage": EventTemplate("onEntityDamage", "evt"),
    "onEntityDeath": EventTemplate("onEntityDeath", "evt"),

    # Commands
    "registerCommand": CommandTemplate(),

    # Messaging
    "log": CallTemplate("api.log", [V('message', "Log message")]),
    "broadcast": CallTemplate("api.sendMessage", [V('message', "Broadcast message")]),
    "sendMessageTo": CallTemplate("api.sendMessageTo", [V('player', "playerName"), V('message', "Hello!")]),

    # World
    "setBlock": CallTemplate("api.world.setBlock", [*_COORDS, V('dimension'), V('blockId')]),
    "getBlock": CallTemplate("api.world.getBlock", [*_COORDS, V('dimension')], assign="block"),
    "fillArea": CallTemplate("api.world.fillArea", [*_BOX, V('dimension'), V('blockId')]),
    "replaceBlocks": CallTemplate("api.world.replaceBlocks", [*_BOX, V('dimension'), V('from'), V('to')]),

    # Players
    "getPlayers": CallTemplate("api.players.list", assign="players"),
    "teleport": CallTemplate("api.players.teleport", [V('player'), *_COORDS, V('dimension')]),
    "setGamemode": CallTemplate("api.players.setGamemode", [V('player'), V('mode')]),
    "setHealth": CallTemplate("api.players.setHealth", [V('player'), E('health')]),
    "heal": CallTemplate("api.players.heal", [V('player'), E('amount')]),
    "giveItem": CallTemplate("api.players.giveItem", [V('player'), V('itemId'), E('count')]),

    # Entities
    "spawnEntity": CallTemplate("api.entities.spawn", [V('entityType'), *_COORDS, V('dimension')], assign="entityId"),
    "killEntity": CallTemplate("api.entities.kill", [V('entityUuid')]),
    "findEntities": FindEntitiesTemplate(),

    # Sound
    "playSound": CallTemplate("api.playSound", [V('soundId'), E('volume'), E('pitch')]),
    "playSoundTo": CallTemplate("api.playSoundTo", [V('player'), V('soundId'), E('volume'), E('pitch')]),
    "playSoundAt": CallTemplate("api.playSoundAt", [*_COORDS, V('dimension'), V('soundId'), E('volume'), E('pitch')]),

    # Data
    "loadData": CallTemplate("api.data.load", [V('namespace'), V('key')], assign="data"),
    "saveData": CallTemplate("api.data.save", [V('namespace'), V('key'), E('value')]),

    # Scheduling
    "runLater": ScheduleTemplate("api.scheduling.runLater", 'ticks', '20'),
    "runRepeating": ScheduleTemplate("api.scheduling.runRepeating", 'interval', '20'),

    # Control
    "if": IfTemplate(),
    "forEach": ForEachTemplate(),
}

_PLACEHOLDER = PlaceholderTemplate()


def register_template(type_name: str, template: StatementTemplate):
    """Register (or replace) the template used for a node type."""
    TEMPLATE_REGISTRY[type_name] = template


def get_template(type_name: str) -> StatementTemplate:
    return TEMPLATE_REGISTRY.get(type_name, _PLACEHOLDER)
