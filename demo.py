#!/usr/bin/env python3
"""
Demo script for Mod Designer Core functionality.

This script demonstrates the key features of the designer:
1. Building a graph from the packaged node catalog
2. Resolving the variables available to a node
3. Generating the mod's JavaScript
4. Exporting and re-importing the graph
"""

from mod_designer_core import Designer, DesignerRegistry, DesignerSettings


def demo_build_graph():
    """Build a welcome mod: greet joining players and give them a diamond."""
    print("=== Demo 1: Building a Graph ===")

    designer = Designer(DesignerRegistry.default())
    designer.set_mod_name("welcome-mod")

    join = designer.create_node("onPlayerJoin", 40, 40)
    greet = designer.create_node("sendMessageTo", 260, 40)
    gift = designer.create_node("giveItem", 480, 40)

    designer.update_params(greet.id, {"player": "$player", "message": "Welcome ${player.name}!"})
    designer.update_params(gift.id, {"player": "$player", "itemId": "minecraft:diamond", "count": "1"})

    designer.create_connection(join.id, greet.id)
    designer.create_connection(greet.id, gift.id)

    # Rejected: event nodes have no input port
    designer.create_connection(gift.id, join.id)
    print(f"Status after invalid connection: {designer.status}")

    return designer, gift


def demo_scope(designer, node):
    """Show what the sidebar would display for a node."""
    print("\n=== Demo 2: Variable Scope ===")
    print(designer.describe_scope(node.id))
    for info in designer.variables_with_schema(node.id):
        print(f"  {info.name}: {len(info.properties)} properties")
        for prop in info.properties[:3]:
            print(f"    - {prop.path} ({prop.type})")


def demo_generate(designer):
    """Print the generated program."""
    print("\n=== Demo 3: Generated Code ===")
    filename, code = designer.download()
    print(f"File: {filename}")
    print("-" * 40)
    print(code)
    print("-" * 40)


def demo_round_trip(designer):
    """Export the graph and import it into a fresh designer."""
    print("\n=== Demo 4: Export / Import ===")
    exported = designer.export_graph()

    other = Designer(designer.registry, DesignerSettings(dedupe_shared_descendants=True))
    other.import_graph(exported)
    print(other.status)
    print(f"Code identical after round trip: {other.code == designer.code}")


def main():
    """Run all demos."""
    print("Mod Designer Core - Feature Demonstration")
    print("=" * 50)

    try:
        designer, gift = demo_build_graph()
        demo_scope(designer, gift)
        demo_generate(designer)
        demo_round_trip(designer)

        print("\nAll demos completed successfully!")

    except Exception as e:
        print(f"\nDemo failed with error: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    main()
