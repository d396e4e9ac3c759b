"""
Tests for inventory resolution.
"""

import yaml

from bolt_step.inventory_resolver import resolve_inventory


class TestResolveInventory:
    """Tests for choosing the effective inventory."""

    def test_spec_inventory_is_written(self, make_spec, workspace):
        """Test an inventory in the spec wins and is written unchanged."""
        inventory = {
            "groups": [
                {
                    "name": "web",
                    "targets": ["web1.example.test", "web2.example.test"],
                    "config": {"transport": "ssh"},
                }
            ]
        }
        spec = make_spec(inventory=inventory)

        path = resolve_inventory(spec, workspace.project_dir, workspace.inventory_file)

        assert path == workspace.inventory_file
        assert yaml.safe_load(path.read_text()) == inventory

    def test_spec_inventory_string_written_verbatim(self, make_spec, workspace):
        """Test a string inventory is copied byte for byte."""
        inventory = "targets:\n  - uri: db1.example.test\n"
        spec = make_spec(inventory=inventory)

        path = resolve_inventory(spec, workspace.project_dir, workspace.inventory_file)

        assert path.read_text() == inventory

    def test_default_inventory_when_absent(self, make_spec, workspace):
        """Test the project inventory is used without checking it exists."""
        spec = make_spec(type="task")

        path = resolve_inventory(spec, workspace.project_dir, workspace.inventory_file)

        assert path == workspace.project_dir / "inventory.yaml"
        assert not path.exists()
        assert not workspace.inventory_file.exists()

    def test_null_inventory_uses_default(self, make_spec, workspace):
        """Test a null inventory is treated as unset."""
        spec = make_spec(inventory=None)

        path = resolve_inventory(spec, workspace.project_dir, workspace.inventory_file)

        assert path == workspace.project_dir / "inventory.yaml"
