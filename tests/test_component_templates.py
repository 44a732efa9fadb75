# CUI // SP-CTI
"""Tests for idempiere_cli.builder.component_templates -- fallback generator."""
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from idempiere_cli.builder.component_templates import COMPONENT_TYPES, generate_component
from idempiere_cli.builder.guardrail import PACKAGE_PATTERN
from idempiere_cli.resilience.errors import UnknownComponentTypeError
from tests.conftest import PLUGIN_ID

SRC = Path("src") / "org" / "example" / "myplugin"


class TestGenerateComponent:

    def test_all_types_known(self):
        assert len(COMPONENT_TYPES) == 14
        assert "zk-form-zul" in COMPONENT_TYPES

    @pytest.mark.parametrize("component_type", [t for t in COMPONENT_TYPES if t != "zk-form-zul"])
    def test_java_in_base_package(self, component_type, plugin_dir):
        files = generate_component(component_type, "Thing", plugin_dir, PLUGIN_ID)
        source = plugin_dir / SRC / "Thing.java"
        assert files[0] == source
        text = source.read_text(encoding="utf-8")
        assert PACKAGE_PATTERN.search(text).group(1) == PLUGIN_ID
        assert "class Thing" in text

    def test_callout_params(self, plugin_dir):
        generate_component("callout", "BPCallout", plugin_dir, PLUGIN_ID,
                           {"table": "C_Invoice", "column": "C_BPartner_ID"})
        text = (plugin_dir / SRC / "BPCallout.java").read_text(encoding="utf-8")
        assert '@Callout(tableName = "C_Invoice", columnName = "C_BPartner_ID")' in text

    def test_rest_extension_path(self, plugin_dir):
        generate_component("rest-extension", "Orders", plugin_dir, PLUGIN_ID, {"path": "v1/orders"})
        text = (plugin_dir / SRC / "Orders.java").read_text(encoding="utf-8")
        assert '@Path("v1/orders")' in text

    def test_zul_form(self, plugin_dir):
        files = generate_component("zk-form-zul", "Dashboard", plugin_dir, PLUGIN_ID)
        assert files == [plugin_dir / SRC / "DashboardController.java",
                         plugin_dir / "src" / "web" / "Dashboard.zul"]
        zul = files[1].read_text(encoding="utf-8")
        assert 'apply="org.example.myplugin.DashboardController"' in zul
        manifest = (plugin_dir / "META-INF" / "MANIFEST.MF").read_text(encoding="utf-8")
        assert "org.adempiere.ui.zk" in manifest

    def test_jasper_report(self, plugin_dir):
        files = generate_component("jasper-report", "Invoice", plugin_dir, PLUGIN_ID)
        assert files[1] == plugin_dir / "reports" / "Invoice.jrxml"
        assert 'name="Invoice"' in files[1].read_text(encoding="utf-8")

    def test_overwrites_existing(self, plugin_dir):
        target = plugin_dir / SRC / "Thing.java"
        target.write_text("old", encoding="utf-8")
        generate_component("process", "Thing", plugin_dir, PLUGIN_ID)
        assert "extends SvrProcess" in target.read_text(encoding="utf-8")

    def test_manifest_idempotent_across_runs(self, plugin_dir):
        generate_component("zk-form", "A", plugin_dir, PLUGIN_ID)
        manifest = plugin_dir / "META-INF" / "MANIFEST.MF"
        first = manifest.read_text(encoding="utf-8")
        generate_component("listbox-group", "B", plugin_dir, PLUGIN_ID)
        assert manifest.read_text(encoding="utf-8") == first

    def test_unknown_type(self, plugin_dir):
        with pytest.raises(UnknownComponentTypeError, match="Unknown component type: gizmo"):
            generate_component("gizmo", "X", plugin_dir, PLUGIN_ID)
