#!/usr/bin/env python3
# CUI // SP-CTI
"""AI-assisted component generation with deterministic template fallback.

State machine per invocation::

    START -> CONTEXT_BUILT -> AI_DISABLED ----------------------------+
                           -> PROMPT_BUILT -> AI_CALLED -> PARSE_FAILED -+
                                                       -> PARSED -> BLOCKED -+
                                                                 -> VALIDATED -> APPLIED
                                                                                      |
    AI_DISABLED / PARSE_FAILED / BLOCKED (or a write error) -> FALLBACK_APPLIED <-----+

Every rejection keeps the raw AI text and the reason in the session log,
so a usable scaffold is always produced and rejected AI material can be
reused by hand. Only one AI call is made per invocation; parse and
guardrail failures are never retried.

Usage:
    from idempiere_cli.builder.smart_scaffold import add_component

    result = add_component("callout", "MyCallout", Path("org.example.plugin"),
                           {"prompt": "set the sales rep from the business partner"})
    print(result.state, result.used_ai, result.files)
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from idempiere_cli.builder.component_templates import COMPONENT_TYPES, generate_component
from idempiere_cli.builder.guardrail import BLOCKER, has_blocking_issue, validate_generated_code
from idempiere_cli.builder.merge import apply_generated_code
from idempiere_cli.builder.prompt_builder import build_prompt
from idempiere_cli.builder.response_parser import parse_detailed
from idempiere_cli.config import CliConfig, load_config
from idempiere_cli.llm.provider import AiClient
from idempiere_cli.llm.router import get_client
from idempiere_cli.project.analyzer import ProjectContext, analyze
from idempiere_cli.project.session_log import SessionLogger
from idempiere_cli.project.skills import load_skill

logger = logging.getLogger("idempiere_cli.builder.smart_scaffold")


class ScaffoldState(Enum):
    START = "START"
    CONTEXT_BUILT = "CONTEXT_BUILT"
    AI_DISABLED = "AI_DISABLED"
    PROMPT_BUILT = "PROMPT_BUILT"
    AI_CALLED = "AI_CALLED"
    PARSE_FAILED = "PARSE_FAILED"
    PARSED = "PARSED"
    BLOCKED = "BLOCKED"
    VALIDATED = "VALIDATED"
    APPLIED = "APPLIED"
    FALLBACK_APPLIED = "FALLBACK_APPLIED"


# Error codes reported in ScaffoldResult.error_code
UNKNOWN_COMPONENT_TYPE = "UNKNOWN_COMPONENT_TYPE"
PLUGIN_DIR_NOT_FOUND = "PLUGIN_DIR_NOT_FOUND"
WRITE_FAILED = "WRITE_FAILED"


@dataclass
class ScaffoldResult:
    """Outcome of one add-component invocation."""
    component_type: str
    name: str
    plugin_dir: str
    success: bool = False
    history: List[ScaffoldState] = field(default_factory=lambda: [ScaffoldState.START])
    used_ai: bool = False
    provider: Optional[str] = None
    files: List[str] = field(default_factory=list)
    issues: List[str] = field(default_factory=list)
    rejection_reason: Optional[str] = None
    session_log: Optional[str] = None
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def state(self) -> ScaffoldState:
        return self.history[-1]

    def transition(self, state: ScaffoldState) -> None:
        logger.debug("%s %s: %s -> %s", self.component_type, self.name,
                     self.state.value, state.value)
        self.history.append(state)

    def fail(self, code: str, message: str) -> "ScaffoldResult":
        self.success = False
        self.error_code = code
        self.error_message = message
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "component_type": self.component_type,
            "name": self.name,
            "plugin_dir": self.plugin_dir,
            "state": self.state.value,
            "history": [s.value for s in self.history],
            "used_ai": self.used_ai,
            "provider": self.provider,
            "files": list(self.files),
            "issues": list(self.issues),
            "rejection_reason": self.rejection_reason,
            "session_log": self.session_log,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


# ---------------------------------------------------------------------------
# Pipeline steps
# ---------------------------------------------------------------------------

def _reject(result: ScaffoldResult, state: ScaffoldState, reason: str,
            session: SessionLogger) -> None:
    result.transition(state)
    result.rejection_reason = reason
    session.log_error(f"AI output rejected ({state.value}): {reason}")
    logger.warning("AI output rejected (%s): %s", state.value, reason)


def _try_ai(result: ScaffoldResult, client: AiClient, context: ProjectContext,
            base_package: str, component_type: str, name: str, plugin_dir: Path,
            extra_params: Dict[str, Any], config: CliConfig,
            session: SessionLogger) -> None:
    """Run prompt -> call -> parse -> validate -> apply. Leaves APPLIED or a rejection state."""
    skill = load_skill(component_type, config)
    prompt = build_prompt(skill, context, component_type, name, extra_params)
    result.transition(ScaffoldState.PROMPT_BUILT)
    session.log_command_output("ai-prompt", prompt)

    logger.info("Generating %s %s with AI (%s)", component_type, name, client.provider_name)
    response = client.generate(prompt)
    result.transition(ScaffoldState.AI_CALLED)

    if not response.success:
        _reject(result, ScaffoldState.PARSE_FAILED,
                f"AI request failed: {response.error}", session)
        return

    session.log_command_output("ai-response", response.content)
    parsed = parse_detailed(response.content)
    if parsed.code is None:
        _reject(result, ScaffoldState.PARSE_FAILED, parsed.error_message, session)
        return
    result.transition(ScaffoldState.PARSED)

    issues = validate_generated_code(
        parsed.code,
        base_package,
        plugin_dir,
        repository=config.guardrail.get_platform_repository(),
        critical_prefixes=config.guardrail.get_critical_prefixes(),
    )
    result.issues = issues
    for issue in issues:
        session.log_info(f"Guardrail: {issue}")

    if has_blocking_issue(issues):
        blockers = [i[len(BLOCKER):] for i in issues if i.startswith("BLOCKER:")]
        _reject(result, ScaffoldState.BLOCKED,
                "Guardrail blocked AI output: " + "; ".join(blockers), session)
        return
    result.transition(ScaffoldState.VALIDATED)

    try:
        applied = apply_generated_code(parsed.code, plugin_dir)
    except (OSError, ValueError) as exc:
        result.rejection_reason = f"Failed to write AI-generated files: {exc}"
        session.log_error(result.rejection_reason)
        logger.error("Failed to write AI-generated files: %s", exc)
        return

    result.transition(ScaffoldState.APPLIED)
    result.used_ai = True
    result.success = True
    result.files = [str(p) for p in applied.files_written]
    session.log_info(f"Applied AI output: {len(result.files)} file(s)")


def _fallback(result: ScaffoldResult, component_type: str, name: str, plugin_dir: Path,
              plugin_id: str, extra_params: Dict[str, Any], session: SessionLogger) -> None:
    session.log_info(f"Falling back to template generation for {component_type} {name}")
    try:
        files = generate_component(component_type, name, plugin_dir, plugin_id, extra_params)
    except OSError as exc:
        session.log_error(f"Template generation failed: {exc}")
        result.fail(WRITE_FAILED, f"Template generation failed: {exc}")
        return
    result.transition(ScaffoldState.FALLBACK_APPLIED)
    result.success = True
    result.files = [str(p) for p in files]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def add_component(component_type: str,
                  name: str,
                  plugin_dir,
                  extra_params: Optional[Dict[str, Any]] = None,
                  *,
                  config: Optional[CliConfig] = None,
                  client: Optional[AiClient] = None,
                  session: Optional[SessionLogger] = None) -> ScaffoldResult:
    """Add a component to a plugin, AI-assisted when possible.

    Args:
        component_type: One of COMPONENT_TYPES.
        name: Component (class) name.
        plugin_dir: Plugin root directory.
        extra_params: Extra key/values; ``prompt`` is the end user's instruction.
        config: Configuration; loaded from the config files when omitted.
        client: AI client to use instead of resolving one from ``config``.
            Ignored when AI is disabled in ``config``.
        session: Session log; a new one is started when omitted.

    Returns:
        ScaffoldResult. ``success`` is True whenever AI output or the template
        fallback was written.
    """
    plugin_dir = Path(plugin_dir)
    extra_params = dict(extra_params or {})
    result = ScaffoldResult(component_type=component_type, name=name, plugin_dir=str(plugin_dir))

    if component_type not in COMPONENT_TYPES:
        return result.fail(
            UNKNOWN_COMPONENT_TYPE,
            f"Unknown component type: {component_type}. "
            f"Known types: {', '.join(COMPONENT_TYPES)}",
        )
    if not plugin_dir.is_dir():
        return result.fail(PLUGIN_DIR_NOT_FOUND, f"Plugin directory not found: {plugin_dir}")

    if config is None:
        config = load_config(cwd=plugin_dir)

    own_session = session is None
    session = session or SessionLogger()
    if not session.active:
        session.start_session(f"add {component_type} --name {name} --to {plugin_dir}")
    result.session_log = str(session.log_file) if session.log_file else None

    context = analyze(plugin_dir)
    result.transition(ScaffoldState.CONTEXT_BUILT)
    plugin_id = context.plugin_id or plugin_dir.resolve().name

    active_client = None
    if config.ai.is_enabled():
        active_client = client or get_client(config)

    if active_client is None:
        result.transition(ScaffoldState.AI_DISABLED)
        result.rejection_reason = "AI is disabled or no provider is configured"
        session.log_info(result.rejection_reason)
    else:
        result.provider = active_client.provider_name
        _try_ai(result, active_client, context, context.base_package or plugin_id,
                component_type, name, plugin_dir,
                extra_params, config, session)

    if not result.used_ai:
        _fallback(result, component_type, name, plugin_dir, plugin_id, extra_params, session)

    if own_session:
        session.end_session(result.success)
    return result
