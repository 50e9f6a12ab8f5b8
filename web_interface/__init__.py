"""HTTP interface for the Mod Designer."""
