"""
Tests for the mod code generator and its statement templates.
"""

import pytest
from hypothesis import given, settings, strategies as st

from mod_designer_core.code_generator import (
    ModCodeGenerator, download_filename, sanitize_mod_name
)
from mod_designer_core.config import DesignerSettings
from mod_designer_core.graph_store import GraphStore
from mod_designer_core.models import Connection, Graph, Node
from mod_designer_core.node_registry import DesignerRegistry
from mod_designer_core.statement_templates import (
    CallTemplate, StatementTemplate, TEMPLATE_REGISTRY, V, get_template, register_template
)


REGISTRY = DesignerRegistry.default()


def _build(*types):
    store = GraphStore()
    ids = [store.create_node(REGISTRY, t).id for t in types]
    return store, ids


def _generate(store, **settings):
    return ModCodeGenerator(REGISTRY, DesignerSettings(**settings)).generate(store.graph)


class TestProgramShape:
    """Preamble, roots and closing."""

    def test_empty_graph(self):
        code = _generate(GraphStore())

        assert code == "\n".join([
            "// Auto-generated by Mod Designer",
            "// Edit parameters and add custom logic as needed",
            "",
            "api.registerMod('designer-mod', {",
            "  onInitialize(api) {",
            "  }",
            "});",
            "",
        ])

    def test_mod_name_is_sanitized(self):
        store = GraphStore()
        store.set_mod_name("My Mod! v2")

        assert "api.registerMod('My-Mod--v2', {" in _generate(store)

    def test_sanitize_helpers(self):
        assert sanitize_mod_name("a.b/c_d-e") == "a-b-c_d-e"
        assert sanitize_mod_name("") == "designer-mod"
        assert download_filename("my mod") == "my-mod.js"

    def test_event_with_log_child(self):
        store, (join, log) = _build("onPlayerJoin", "log")
        store.update_params(log, {"message": "$player"})
        store.create_connection(join, log)

        code = _generate(store)

        assert code == "\n".join([
            "// Auto-generated by Mod Designer",
            "// Edit parameters and add custom logic as needed",
            "",
            "api.registerMod('designer-mod', {",
            "  onInitialize(api) {",
            "",
            "    // Node #1: Player Join",
            "    api.onPlayerJoin((player) => {",
            "",
            "      // → Log",
            "      api.log(player);",
            "    });",
            "  }",
            "});",
            "",
        ])

    def test_roots_in_creation_order(self):
        store, (tick, join) = _build("onServerTick", "onPlayerJoin")

        code = _generate(store)

        assert code.index("// Node #1: Server Tick") < code.index("// Node #2: Player Join")
        assert "api.onServerTick(() => {" in code

    def test_unconnected_non_root_is_not_emitted(self):
        store, _ = _build("log")

        assert "api.log" not in _generate(store)

    def test_indent_size_setting(self):
        store, (join, log) = _build("onPlayerJoin", "log")
        store.create_connection(join, log)

        code = _generate(store, indent_size=4)

        assert "\n        api.onPlayerJoin((player) => {" in code
        assert "\n            api.log(\"Log message\");" in code


class TestValueSubstitutionInOutput:
    """Parameters flowing through substitution."""

    def test_reference_in_scope_is_bare(self):
        store, (join, log) = _build("onPlayerJoin", "log")
        store.update_params(log, {"message": "$player"})
        store.create_connection(join, log)

        code = _generate(store)

        assert "api.log(player);" in code
        assert '"$player"' not in code

    def test_reference_out_of_scope_is_quoted(self):
        store, (tick, log) = _build("onServerTick", "log")
        store.update_params(log, {"message": "$player"})
        store.create_connection(tick, log)

        assert 'api.log("$player");' in _generate(store)

    def test_plain_message_is_quoted(self):
        store, (tick, log) = _build("onServerTick", "log")
        store.update_params(log, {"message": "hello"})
        store.create_connection(tick, log)

        assert 'api.log("hello");' in _generate(store)

    def test_template_literal(self):
        store, (join, bc) = _build("onPlayerJoin", "broadcast")
        store.update_params(bc, {"message": "Welcome ${player.name}!"})
        store.create_connection(join, bc)

        assert "api.sendMessage(`Welcome ${player.name}!`);" in _generate(store)

    @pytest.mark.parametrize("message", [None, "", 0, 0.0, False, float("nan")])
    def test_falsy_message_uses_default(self, message):
        store, (tick, log) = _build("onServerTick", "log")
        store.update_params(log, {"message": message})
        store.create_connection(tick, log)

        assert 'api.log("Log message");' in _generate(store)

    @pytest.mark.parametrize("message, expected", [
        ("0", 'api.log("0");'),
        (1, "api.log(1);"),
        (True, "api.log(true);"),
        ([], "api.log([]);"),
    ])
    def test_truthy_message_is_kept(self, message, expected):
        store, (tick, log) = _build("onServerTick", "log")
        store.update_params(log, {"message": message})
        store.create_connection(tick, log)

        assert expected in _generate(store)

    def test_malformed_params_do_not_raise(self):
        store, (tick, block) = _build("onServerTick", "setBlock")
        store.update_params(block, {"x": {"weird": [1, 2]}, "y": None, "blockId": 5})
        store.create_connection(tick, block)

        code = _generate(store)

        assert 'api.world.setBlock({"weird": [1, 2]}, undefined, undefined, undefined, 5);' in code


class TestTemplates:
    """Individual statement templates."""

    def _single(self, root_type, child_type, params=None):
        store, (root, child) = _build(root_type, child_type)
        if params is not None:
            store.update_params(child, params)
        store.create_connection(root, child)
        return _generate(store)

    def test_default_params(self):
        code = self._single("onPlayerJoin", "setBlock")

        assert ('api.world.setBlock(0, 64, 0, "minecraft:overworld", "minecraft:stone");'
                in code)

    def test_assigning_calls(self):
        assert "const players = api.players.list();" in self._single("onServerTick", "getPlayers")
        assert ('const block = api.world.getBlock(0, 64, 0, "minecraft:overworld");'
                in self._single("onServerTick", "getBlock"))
        assert ('const entityId = api.entities.spawn("minecraft:cow", 0, 64, 0, "minecraft:overworld");'
                in self._single("onServerTick", "spawnEntity"))

    def test_player_calls_use_scope(self):
        code = self._single("onPlayerJoin", "giveItem", {"player": "$player", "itemId": "minecraft:apple", "count": "3"})

        assert 'api.players.giveItem(player, "minecraft:apple", 3);' in code

    def test_find_entities(self):
        code = self._single("onServerTick", "findEntities", {
            "x": "0", "y": "64", "z": "0", "dimension": "minecraft:overworld",
            "radius": "16", "type": "minecraft:cow",
        })

        assert "\n".join([
            "      const entities = api.entities.find({",
            '        center: { x: 0, y: 64, z: 0, dimensionId: "minecraft:overworld" },',
            '        radius: 16, typeId: "minecraft:cow"',
            "      });",
        ]) in code

    def test_find_entities_without_type(self):
        code = self._single("onServerTick", "findEntities")

        assert "        radius: 16\n" in code
        assert "typeId" not in code

    def test_sound_and_data_calls(self):
        assert ('api.playSound("entity.player.levelup", 1.0, 1.0);'
                in self._single("onServerTick", "playSound"))
        assert ('api.data.save("stats", "kills", {});'
                in self._single("onServerTick", "saveData", {"namespace": "stats", "key": "kills", "value": "{}"}))

    def test_register_command(self):
        store, (cmd, log) = _build("registerCommand", "log")
        store.update_params(cmd, {"name": "heal", "permLevel": "2", "playerOnly": True})
        store.update_params(log, {"message": "$ctx.player"})
        store.create_connection(cmd, log)

        code = _generate(store)

        assert '    api.registerCommand("heal", (ctx, args) => {' in code
        assert "      api.log(ctx.player);" in code
        assert "    }, 2, true);" in code

    def test_register_command_defaults(self):
        store, _ = _build("registerCommand")

        code = _generate(store)

        assert 'api.registerCommand("mycommand", (ctx, args) => {' in code
        assert "}, 0, false);" in code

    def test_register_command_zero_name_uses_default(self):
        store, (command,) = _build("registerCommand")
        store.update_params(command, {"name": 0})

        assert 'api.registerCommand("mycommand", (ctx, args) => {' in _generate(store)

    def test_statements_chain_at_same_level(self):
        store, (join, first, second) = _build("onPlayerJoin", "log", "broadcast")
        store.create_connection(join, first)
        store.create_connection(first, second)

        lines = _generate(store).split("\n")

        assert '      api.log("Log message");' in lines
        assert "      // → Broadcast" in lines
        assert '      api.sendMessage("Broadcast message");' in lines

    def test_blocks_nest_one_level(self):
        store, (join, cond, later, log) = _build("onPlayerJoin", "if", "runLater", "log")
        store.update_params(cond, {"condition": "player.health < 10"})
        for source, target in [(join, cond), (cond, later), (later, log)]:
            store.create_connection(source, target)

        lines = _generate(store).split("\n")

        assert "      if (player.health < 10) {" in lines
        assert "        api.scheduling.runLater(20, () => {" in lines
        assert '          api.log("Log message");' in lines
        assert "        });" in lines
        assert "      }" in lines

    def test_for_each(self):
        store, (tick, players, loop, log) = _build("onServerTick", "getPlayers", "forEach", "log")
        store.update_params(loop, {"array": "players", "varName": "p"})
        store.update_params(log, {"message": "$players"})
        for source, target in [(tick, players), (players, loop), (loop, log)]:
            store.create_connection(source, target)

        code = _generate(store)

        assert "      players.forEach((p) => {" in code
        assert "        api.log(players);" in code

    def test_custom_code_is_reindented(self):
        store, (join, log) = _build("onPlayerJoin", "log")
        store.set_custom_code(log, "const a = 1;\n\n  doThing(a);")
        store.create_connection(join, log)

        lines = _generate(store).split("\n")
        start = lines.index('      api.log("Log message");')

        assert lines[start + 1:start + 4] == ["      const a = 1;", "", "        doThing(a);"]

    def test_unknown_type_placeholder(self):
        store, (join, custom, log) = _build("onPlayerJoin", "teleportHome", "log")
        store.set_custom_code(custom, "home(player);")
        store.create_connection(join, custom)
        store.create_connection(custom, log)

        lines = _generate(store).split("\n")

        assert "      // Unknown node type: teleportHome" in lines
        assert "      home(player);" in lines
        assert '      api.log("Log message");' in lines

    def test_every_packaged_type_has_a_template(self):
        for type_name in REGISTRY.node_types:
            assert type_name in TEMPLATE_REGISTRY, type_name

    def test_register_custom_template(self):
        class ShoutTemplate(StatementTemplate):
            def statement_lines(self, ctx):
                return [f"shout({ctx.value('text', 'hey')});"]

        register_template("shout", ShoutTemplate())
        try:
            store, (tick, shout) = _build("onServerTick", "shout")
            store.create_connection(tick, shout)

            assert '      shout("hey");' in _generate(store).split("\n")
        finally:
            del TEMPLATE_REGISTRY["shout"]

    def test_generator_level_template_override(self):
        store, (tick, log) = _build("onServerTick", "log")
        store.create_connection(tick, log)
        generator = ModCodeGenerator(REGISTRY, templates={"log": CallTemplate("console.log", [V("message", "x")])})

        assert 'console.log("Log message");' in generator.generate(store.graph)
        assert get_template("log") is TEMPLATE_REGISTRY["log"]


class TestFanInAndCycles:
    """Shared descendants and cyclic graphs."""

    def _diamond(self):
        store, (join, left, right, shared) = _build("onPlayerJoin", "log", "broadcast", "heal")
        for source, target in [(join, left), (join, right), (left, shared), (right, shared)]:
            store.create_connection(source, target)
        return store

    def test_fan_in_duplicates_by_default(self):
        code = _generate(self._diamond())

        assert code.count("api.players.heal(") == 2

    def test_fan_in_deduplicated_when_enabled(self):
        code = _generate(self._diamond(), dedupe_shared_descendants=True)

        assert code.count("api.players.heal(") == 1

    def test_cycle_is_not_expanded_again(self):
        store, (join, first, second) = _build("onPlayerJoin", "log", "broadcast")
        store.create_connection(join, first)
        store.create_connection(first, second)
        store.create_connection(second, first)

        code = _generate(store)

        assert code.count("api.log(") == 1
        assert code.count("api.sendMessage(") == 1
        assert "// cycle: Node #2 is already generated above" in code

    def test_generate_node_preview(self):
        store, (join, log) = _build("onPlayerJoin", "log")
        store.create_connection(join, log)
        generator = ModCodeGenerator(REGISTRY)

        assert generator.generate_node(store.graph, log) == ['api.log("Log message");']
        assert generator.generate_node(store.graph, 99) == []


# Property-based tests
@settings(max_examples=50, deadline=None)
@given(st.lists(st.sampled_from(["onPlayerJoin", "log", "if", "broadcast", "mystery"]),
                min_size=1, max_size=7),
       st.lists(st.tuples(st.integers(1, 7), st.integers(1, 7)), max_size=20))
def test_generation_is_total(types, edges):
    """Any graph, cyclic or not, compiles to a complete program."""
    store = GraphStore()
    for type_name in types:
        store.create_node(REGISTRY, type_name)
    for source, target in edges:
        store.create_connection(source, target)

    code = ModCodeGenerator(REGISTRY).generate(store.graph)

    assert code.startswith("// Auto-generated by Mod Designer")
    assert code.endswith("  }\n});\n")


@settings(max_examples=50, deadline=None)
@given(st.lists(st.tuples(st.integers(1, 6), st.integers(1, 6)), max_size=15))
def test_guard_does_not_change_acyclic_output(edges):
    """Acyclic graphs produce no cycle markers."""
    graph = Graph()
    graph.add_node(Node(id=1, type="onServerTick", label="Tick", accepts_input=False))
    for node_id in range(2, 7):
        graph.add_node(Node(id=node_id, type="log", label="Log"))
    for index, (source, target) in enumerate(edges, start=1):
        if source < target:
            graph.connections.append(Connection(index, source, target))

    assert "// cycle:" not in ModCodeGenerator(REGISTRY).generate(graph)


@given(st.one_of(st.none(), st.booleans(), st.integers(), st.floats(), st.text(max_size=8)))
def test_log_message_falls_back_like_javascript_or(message):
    """``message || "Log message"``: only falsy values pick the default."""
    store, (tick, log) = _build("onServerTick", "log")
    store.update_params(log, {"message": message})
    store.create_connection(tick, log)

    code = _generate(store)

    uses_default = message is None or message is False or message == "" or (
        not isinstance(message, (bool, str)) and (message == 0 or message != message)
    )
    assert ('api.log("Log message");' in code) == uses_default
