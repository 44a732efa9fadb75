#!/usr/bin/env python3
# CUI // SP-CTI
"""Deterministic component templates for iDempiere plugins.

The fallback generator used whenever AI generation is disabled or its
output is rejected. Every known component type produces a minimal,
compilable skeleton in the plugin's base package, and the bundles and
packages the type needs are added to MANIFEST.MF through the same
idempotent patcher the AI path uses.

Generators return the list of files written.
"""

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from idempiere_cli.project.manifest import apply_manifest_additions, required_manifest_additions
from idempiere_cli.resilience.errors import UnknownComponentTypeError

logger = logging.getLogger("idempiere_cli.builder.component_templates")


def _write_file(path: Path, content: str) -> None:
    """Write content to a file, creating parent dirs as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _java_path(plugin_dir: Path, package: str, class_name: str) -> Path:
    return plugin_dir / "src" / Path(*package.split(".")) / f"{class_name}.java"


def _param(extra: Dict, key: str, default: str) -> str:
    value = extra.get(key)
    return str(value) if value not in (None, "") else default


# ---------------------------------------------------------------------------
# Java sources
# ---------------------------------------------------------------------------

def _callout(package: str, name: str, extra: Dict) -> str:
    table = _param(extra, "table", "C_Order")
    column = _param(extra, "column", "C_BPartner_ID")
    return f"""package {package};

import java.util.Properties;

import org.adempiere.base.IColumnCallout;
import org.adempiere.base.annotation.Callout;
import org.compiere.model.GridField;
import org.compiere.model.GridTab;

@Callout(tableName = "{table}", columnName = "{column}")
public class {name} implements IColumnCallout {{

    @Override
    public String start(Properties ctx, int WindowNo, GridTab mTab, GridField mField,
            Object value, Object oldValue) {{
        return null;
    }}
}}
"""


def _process(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.adempiere.base.annotation.Process;
import org.compiere.process.SvrProcess;

@Process
public class {name} extends SvrProcess {{

    @Override
    protected void prepare() {{
    }}

    @Override
    protected String doIt() throws Exception {{
        return "@OK@";
    }}
}}
"""


def _plain_process(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.compiere.process.SvrProcess;

public class {name} extends SvrProcess {{

    @Override
    protected void prepare() {{
    }}

    @Override
    protected String doIt() throws Exception {{
        return "@OK@";
    }}
}}
"""


def _event_handler(package: str, name: str, extra: Dict) -> str:
    table = _param(extra, "table", "C_Order")
    return f"""package {package};

import org.adempiere.base.event.AbstractEventHandler;
import org.adempiere.base.event.IEventTopics;
import org.osgi.service.event.Event;

public class {name} extends AbstractEventHandler {{

    @Override
    protected void initialize() {{
        registerTableEvent(IEventTopics.PO_BEFORE_CHANGE, "{table}");
    }}

    @Override
    protected void doHandleEvent(Event event) {{
    }}
}}
"""


def _zk_form(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.adempiere.webui.panel.ADForm;
import org.zkoss.zul.Label;

public class {name} extends ADForm {{

    private static final long serialVersionUID = 1L;

    @Override
    protected void initForm() {{
        appendChild(new Label("{name}"));
    }}
}}
"""


def _zk_form_zul_controller(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.zkoss.zk.ui.Component;
import org.zkoss.zk.ui.select.SelectorComposer;

public class {name}Controller extends SelectorComposer<Component> {{

    private static final long serialVersionUID = 1L;

    @Override
    public void doAfterCompose(Component comp) throws Exception {{
        super.doAfterCompose(comp);
    }}
}}
"""


def _zul_layout(package: str, name: str, extra: Dict) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<zk>
    <window id="{name[0].lower() + name[1:]}" apply="{package}.{name}Controller" width="100%" height="100%">
        <label value="{name}"/>
    </window>
</zk>
"""


def _listbox_group(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.adempiere.webui.component.Listbox;
import org.adempiere.webui.panel.ADForm;
import org.zkoss.zul.GroupsModelArray;

public class {name} extends ADForm {{

    private static final long serialVersionUID = 1L;

    private final Listbox listbox = new Listbox();

    @Override
    protected void initForm() {{
        Object[][] groups = new Object[][] {{ {{}} }};
        listbox.setModel(new GroupsModelArray<Object, Object, Object, Object>(groups, new String[] {{ "" }}));
        appendChild(listbox);
    }}
}}
"""


def _wlistbox_editor(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.adempiere.webui.component.WListbox;
import org.adempiere.webui.panel.ADForm;
import org.compiere.minigrid.ColumnInfo;

public class {name} extends ADForm {{

    private static final long serialVersionUID = 1L;

    private final WListbox listbox = new WListbox();

    @Override
    protected void initForm() {{
        ColumnInfo[] layout = new ColumnInfo[] {{
            new ColumnInfo("Name", "Name", String.class),
        }};
        listbox.prepareTable(layout, "", "", false, "");
        appendChild(listbox);
    }}
}}
"""


def _jrxml(package: str, name: str, extra: Dict) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<jasperReport xmlns="http://jasperreports.sourceforge.net/jasperreports"
    name="{name}" pageWidth="595" pageHeight="842" columnWidth="555"
    leftMargin="20" rightMargin="20" topMargin="20" bottomMargin="20">
    <title>
        <band height="40">
            <staticText>
                <reportElement x="0" y="0" width="555" height="30"/>
                <text><![CDATA[{name}]]></text>
            </staticText>
        </band>
    </title>
</jasperReport>
"""


def _window_validator(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import org.adempiere.util.Callback;
import org.adempiere.webui.adwindow.validator.WindowValidator;
import org.adempiere.webui.adwindow.validator.WindowValidatorEvent;

public class {name} implements WindowValidator {{

    @Override
    public void onWindowEvent(WindowValidatorEvent event, Callback<Boolean> callback) {{
        callback.onCallback(Boolean.TRUE);
    }}
}}
"""


def _rest_extension(package: str, name: str, extra: Dict) -> str:
    resource = _param(extra, "path", name[0].lower() + name[1:])
    return f"""package {package};

import javax.ws.rs.GET;
import javax.ws.rs.Path;
import javax.ws.rs.Produces;
import javax.ws.rs.core.MediaType;
import javax.ws.rs.core.Response;

@Path("{resource}")
public class {name} {{

    @GET
    @Produces(MediaType.APPLICATION_JSON)
    public Response get() {{
        return Response.ok("{{}}").build();
    }}
}}
"""


def _facts_validator(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import java.util.List;

import org.compiere.acct.Fact;
import org.compiere.model.FactsValidator;
import org.compiere.model.MAcctSchema;
import org.compiere.model.PO;

public class {name} implements FactsValidator {{

    @Override
    public int getAD_Client_ID() {{
        return 0;
    }}

    @Override
    public String factsValidate(MAcctSchema schema, List<Fact> facts, PO po) {{
        return null;
    }}
}}
"""


def _base_test(package: str, name: str, extra: Dict) -> str:
    return f"""package {package};

import static org.junit.jupiter.api.Assertions.assertNotNull;

import org.idempiere.test.AbstractTestCase;
import org.junit.jupiter.api.Test;

public class {name} extends AbstractTestCase {{

    @Test
    public void testContext() {{
        assertNotNull(getCtx());
    }}
}}
"""


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

JavaTemplate = Callable[[str, str, Dict], str]

# component type -> main Java source template; zk-form-zul is handled separately
JAVA_TEMPLATES: Dict[str, JavaTemplate] = {
    "callout": _callout,
    "process": _process,
    "process-mapped": _plain_process,
    "event-handler": _event_handler,
    "zk-form": _zk_form,
    "listbox-group": _listbox_group,
    "wlistbox-editor": _wlistbox_editor,
    "report": _process,
    "jasper-report": _plain_process,
    "window-validator": _window_validator,
    "rest-extension": _rest_extension,
    "facts-validator": _facts_validator,
    "base-test": _base_test,
}

COMPONENT_TYPES = tuple(sorted(set(JAVA_TEMPLATES) | {"zk-form-zul"}))


def generate_component(component_type: str,
                       name: str,
                       plugin_dir,
                       plugin_id: str,
                       extra: Optional[Dict] = None) -> List[Path]:
    """Write the template files for ``component_type`` and patch MANIFEST.MF.

    Raises:
        UnknownComponentTypeError: If no template exists for the type.
        OSError: On write failure.
    """
    if component_type not in COMPONENT_TYPES:
        raise UnknownComponentTypeError(component_type)

    plugin_dir = Path(plugin_dir)
    extra = dict(extra or {})
    package = plugin_id
    files: List[Path] = []

    if component_type == "zk-form-zul":
        controller = _java_path(plugin_dir, package, f"{name}Controller")
        _write_file(controller, _zk_form_zul_controller(package, name, extra))
        files.append(controller)
        zul = plugin_dir / "src" / "web" / f"{name}.zul"
        _write_file(zul, _zul_layout(package, name, extra))
        files.append(zul)
    else:
        source = _java_path(plugin_dir, package, name)
        _write_file(source, JAVA_TEMPLATES[component_type](package, name, extra))
        files.append(source)

    if component_type == "jasper-report":
        report = plugin_dir / "reports" / f"{name}.jrxml"
        _write_file(report, _jrxml(package, name, extra))
        files.append(report)

    apply_manifest_additions(plugin_dir, required_manifest_additions(component_type))
    logger.info("Generated %s %s from template (%d file(s))", component_type, name, len(files))
    return files
