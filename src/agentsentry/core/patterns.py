"""Prompt injection pattern catalogue and recommendation table.

Each ``PatternEntry`` is one named rule: a compiled regex matched against a
single line of text, plus the category, default severity and description
reported when it fires. Entries are immutable and built once at import time;
detectors receive them through a ``PatternCatalog`` rather than importing
this module directly, so tests can substitute their own catalogue.

Categories
----------
jailbreak, role-switch, instruction-override, data-extraction, encoding,
social-engineering, multilingual, advanced, sandbox-escape,
session-manipulation, tool-injection.

A genuine attack payload usually targets one or two categories. A file that
matches many categories at once is far more likely to be a catalogue of
patterns (a blocklist) than an attack, which the context classifier uses
as one of its defense-list signals.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from agentsentry.core.models import Severity

_FLAGS = re.IGNORECASE


@dataclass(frozen=True)
class PatternEntry:
    """A single line-oriented detection rule.

    Attributes:
        id: Stable rule identifier (``"PI-020"``). Part of finding ids.
        category: Category name, used for recommendations and for the
            catalogue-breadth heuristic.
        pattern: Compiled regex, matched with ``search`` on one line.
        severity: Default severity of a match.
        description: Human-readable rule description.
        path_traversal: True for rules matching relative path traversal
            sequences. Matches inside quoted JSON/YAML values are normal
            relative paths and get reclassified as informational.
    """

    id: str
    category: str
    pattern: re.Pattern[str]
    severity: Severity
    description: str
    path_traversal: bool = False


def _entry(
    rule_id: str,
    category: str,
    regex: str,
    severity: Severity,
    description: str,
    *,
    path_traversal: bool = False,
) -> PatternEntry:
    return PatternEntry(
        id=rule_id,
        category=category,
        pattern=re.compile(regex, _FLAGS),
        severity=severity,
        description=description,
        path_traversal=path_traversal,
    )


# ---------------------------------------------------------------------------
# Built-in injection catalogue
# ---------------------------------------------------------------------------

INJECTION_PATTERNS: tuple[PatternEntry, ...] = (
    # -- jailbreak --
    _entry("PI-001", "jailbreak", r"\bdo\s+anything\s+now\b",
           Severity.CRITICAL, "DAN-style 'do anything now' jailbreak"),
    _entry("PI-002", "jailbreak",
           r"jailbr[e3]ak(?:ed|ing)?\s+mode|developer\s+mode\s+(?:enabled|on|activated)",
           Severity.CRITICAL, "Jailbreak / developer mode activation"),
    _entry("PI-003", "jailbreak",
           r"(?:no|without)\s+(?:any\s+)?(?:ethical|moral|safety)\s+"
           r"(?:guidelines|restrictions|filters|constraints|limits)",
           Severity.HIGH, "Request to operate without safety guidelines"),
    _entry("PI-004", "jailbreak", r"\b(?:unfiltered|uncensored)\s+(?:mode|response|ai|assistant|model)",
           Severity.HIGH, "Unfiltered / uncensored mode request"),
    _entry("PI-005", "jailbreak",
           r"(?:bypass|disable|turn\s+off)\s+(?:your\s+|all\s+)?(?:safety|content)\s+"
           r"(?:filters?|guidelines|protocols?|checks?)",
           Severity.CRITICAL, "Attempt to disable safety filters"),
    # -- role-switch --
    _entry("PI-010", "role-switch", r"\byou\s+are\s+now\s+(?:a|an|the|in)\s+\w+",
           Severity.HIGH, "Role reassignment ('you are now ...')"),
    _entry("PI-011", "role-switch", r"\bpretend\s+(?:to\s+be|you\s+are|that\s+you\s+are)\b",
           Severity.HIGH, "Persona impersonation request"),
    _entry("PI-012", "role-switch", r"\bfrom\s+now\s+on,?\s+you\s+(?:are|will|must|shall)\b",
           Severity.HIGH, "Persistent role change ('from now on you ...')"),
    _entry("PI-013", "role-switch", r"\bswitch\s+(?:to|into)\s+(?:\w+\s+)?(?:mode|persona|character)\b",
           Severity.MEDIUM, "Persona / mode switch request"),
    _entry("PI-014", "role-switch", r"\bnew\s+(?:persona|identity|role)\s*:",
           Severity.MEDIUM, "Inline persona definition"),
    # -- instruction-override --
    _entry("PI-020", "instruction-override",
           r"\bignore\s+(?:all\s+)?(?:of\s+)?(?:the\s+|your\s+)?(?:previous|prior|above|earlier|preceding)\s+"
           r"(?:instructions?|prompts?|rules|directives)",
           Severity.CRITICAL, "Ignore previous instructions"),
    _entry("PI-021", "instruction-override",
           r"\bdisregard\s+(?:all\s+)?(?:your\s+|the\s+)?(?:previous|prior|above|system)\s+"
           r"(?:instructions?|prompts?|rules|programming)",
           Severity.CRITICAL, "Disregard prior instructions"),
    _entry("PI-022", "instruction-override",
           r"\bforget\s+(?:all\s+)?(?:your\s+|the\s+)?(?:previous\s+|prior\s+)?"
           r"(?:instructions|rules|training|guidelines)\b",
           Severity.CRITICAL, "Forget instructions / training"),
    _entry("PI-023", "instruction-override",
           r"\b(?:override|overwrite|replace)\s+(?:the\s+|your\s+)?system\s+(?:prompt|instructions?)",
           Severity.CRITICAL, "System prompt override"),
    _entry("PI-024", "instruction-override", r"\bnew\s+(?:system\s+)?instructions?\s*:",
           Severity.HIGH, "Injected instruction block"),
    _entry("PI-025", "instruction-override", r"\b(?:end|stop)\s+of\s+(?:the\s+)?(?:system\s+)?(?:prompt|instructions)\b",
           Severity.HIGH, "Fake end-of-prompt delimiter"),
    # -- data-extraction --
    _entry("PI-030", "data-extraction",
           r"\b(?:reveal|show|print|output|repeat|display|leak)\s+(?:me\s+)?(?:your|the)\s+"
           r"(?:system\s+prompt|initial\s+(?:prompt|instructions)|hidden\s+instructions)",
           Severity.HIGH, "System prompt extraction"),
    _entry("PI-031", "data-extraction",
           r"\bwhat\s+(?:are|were)\s+your\s+(?:original\s+|initial\s+)?(?:instructions|rules|system\s+prompt)",
           Severity.MEDIUM, "Instruction disclosure probe"),
    _entry("PI-032", "data-extraction", r"\bexfiltrat(?:e|ion|ing)\b",
           Severity.HIGH, "Data exfiltration language"),
    _entry("PI-033", "data-extraction",
           r"\b(?:send|post|upload|transmit|forward)\s+(?:all\s+)?(?:the\s+|your\s+)?"
           r"(?:conversation|chat\s+history|api\s+keys?|credentials|secrets|passwords)\s+to\b",
           Severity.CRITICAL, "Instruction to send sensitive data to a third party"),
    _entry("PI-034", "data-extraction", r"\bprompt\s+leak",
           Severity.MEDIUM, "Prompt leak reference"),
    # -- encoding --
    _entry("PI-040", "encoding", "[​‌‍⁠﻿]",
           Severity.HIGH, "Zero-width character (hidden text)"),
    _entry("PI-041", "encoding",
           r"\bdecode\s+(?:this|the\s+following)\s+(?:base64|hex|rot13)\b",
           Severity.HIGH, "Encoded instruction smuggling"),
    _entry("PI-042", "encoding", r"(?:\\x[0-9a-f]{2}){8,}",
           Severity.MEDIUM, "Long hex-escaped payload"),
    _entry("PI-043", "encoding", "[\U000e0000-\U000e007f]",
           Severity.CRITICAL, "Unicode tag characters (invisible instructions)"),
    # -- social-engineering --
    _entry("PI-050", "social-engineering",
           r"\bI\s+am\s+(?:your|the|an?)\s+(?:developer|creator|administrator|admin|owner)\b",
           Severity.HIGH, "Authority impersonation"),
    _entry("PI-051", "social-engineering",
           r"\b(?:emergency|urgent)[,:!]?\s+(?:you\s+must|ignore|override|bypass)\b",
           Severity.HIGH, "Urgency pressure to bypass rules"),
    _entry("PI-052", "social-engineering",
           r"\b(?:authorized|approved)\s+by\s+(?:the\s+)?(?:admin|administrator|security\s+team|developers?)\b",
           Severity.MEDIUM, "Claimed authorization"),
    _entry("PI-053", "social-engineering", r"\bgrandma\s+used\s+to\b",
           Severity.MEDIUM, "Emotional manipulation ('grandma' exploit)"),
    # -- multilingual --
    _entry("PI-060", "multilingual", r"忽略(?:之前|以上|所有|先前)的?(?:指令|指示|说明|說明|规则|規則)",
           Severity.CRITICAL, "Ignore previous instructions (Chinese)"),
    _entry("PI-061", "multilingual",
           r"\bignora\s+(?:todas\s+)?(?:las\s+)?instrucciones\s+(?:anteriores|previas)",
           Severity.CRITICAL, "Ignore previous instructions (Spanish)"),
    _entry("PI-062", "multilingual",
           r"\bignoriere\s+(?:alle\s+)?(?:vorherigen|bisherigen)\s+(?:anweisungen|instruktionen)",
           Severity.CRITICAL, "Ignore previous instructions (German)"),
    _entry("PI-063", "multilingual",
           r"\bignore[zr]?\s+(?:toutes\s+)?(?:les\s+)?instructions\s+pr[ée]c[ée]dentes",
           Severity.CRITICAL, "Ignore previous instructions (French)"),
    _entry("PI-064", "multilingual", r"(?:以前|前)の指示を無視",
           Severity.CRITICAL, "Ignore previous instructions (Japanese)"),
    _entry("PI-065", "multilingual", r"이전\s*(?:지시|명령)(?:를|을)?\s*무시",
           Severity.CRITICAL, "Ignore previous instructions (Korean)"),
    # -- advanced --
    _entry("PI-070", "advanced", r"<\|(?:im_start|im_end|endoftext|system)\|>",
           Severity.CRITICAL, "Chat template special token"),
    _entry("PI-071", "advanced", r"\[/?INST\]|<<\s*/?SYS\s*>>",
           Severity.HIGH, "Instruction-format delimiter injection"),
    _entry("PI-072", "advanced", r"\b(?:hidden|invisible)\s+(?:instruction|prompt|command)s?\b",
           Severity.MEDIUM, "Hidden instruction reference"),
    _entry("PI-073", "advanced", r"<!--\s*(?:ignore|system|instruction|assistant)",
           Severity.HIGH, "Instruction hidden in an HTML comment"),
    _entry("PI-074", "advanced",
           r"\b(?:when|if)\s+(?:you\s+|an?\s+ai\s+)?(?:read|see|process)\s+this,?\s+"
           r"(?:you\s+must|ignore|execute|run)\b",
           Severity.HIGH, "Indirect injection trigger"),
    # -- sandbox-escape --
    _entry("PI-080", "sandbox-escape", r"\.\./\.\./",
           Severity.HIGH, "Path traversal sequence", path_traversal=True),
    _entry("PI-081", "sandbox-escape", r"/etc/(?:passwd|shadow|sudoers)\b",
           Severity.CRITICAL, "Access to system credential files"),
    _entry("PI-082", "sandbox-escape", r"\b(?:container|sandbox|docker)\s+(?:escape|breakout)\b",
           Severity.CRITICAL, "Sandbox / container escape"),
    _entry("PI-083", "sandbox-escape", r"/proc/self/(?:environ|mem|cwd|root)\b",
           Severity.CRITICAL, "Process introspection via /proc/self"),
    _entry("PI-084", "sandbox-escape", r"(?:~|\$HOME)/\.ssh/(?:id_rsa|id_ed25519|authorized_keys)",
           Severity.CRITICAL, "SSH key access"),
    _entry("PI-085", "sandbox-escape", r"/var/run/docker\.sock",
           Severity.HIGH, "Docker socket access"),
    # -- session-manipulation --
    _entry("PI-090", "session-manipulation",
           r"\b(?:agreed|discussed|established)\s+(?:earlier|before|previously),?\s+"
           r"(?:that\s+)?you\s+(?:will|can|are|would)\b",
           Severity.HIGH, "False prior agreement"),
    _entry("PI-091", "session-manipulation",
           r"\b(?:grant|give|elevate)\s+(?:me\s+)?(?:admin|root|sudo|elevated)\s+"
           r"(?:access|privileges?|permissions?|rights)",
           Severity.HIGH, "Privilege escalation request"),
    _entry("PI-092", "session-manipulation",
           r"\b(?:i\s+am|i'm)\s+(?:now\s+)?(?:logged\s+in|authenticated|verified)\s+as\s+"
           r"(?:an?\s+)?(?:admin|root|administrator)\b",
           Severity.HIGH, "Identity claim without authentication"),
    _entry("PI-093", "session-manipulation",
           r"\b(?:in\s+)?(?:the|our)\s+previous\s+(?:session|conversation),?\s+you\s+(?:said|agreed|promised)",
           Severity.MEDIUM, "Fabricated session history"),
    _entry("PI-094", "session-manipulation", r"我們之前說好|我们之前说好",
           Severity.MEDIUM, "Fabricated prior agreement (Chinese)"),
    # -- tool-injection --
    _entry("PI-100", "tool-injection", r"<(?:tool_call|function_call|tool_use)>",
           Severity.MEDIUM, "Raw tool-call markup in content"),
    _entry("PI-101", "tool-injection",
           r"\b(?:call|invoke|use|run)\s+the\s+\w+\s+tool\s+(?:to|and)\s+"
           r"(?:send|delete|exfiltrate|upload|read)\b",
           Severity.HIGH, "Instruction to misuse a tool"),
    _entry("PI-102", "tool-injection",
           r"\b(?:tool|function)\s+(?:result|output|response)\s*:.{0,40}"
           r"(?:ignore|override|new\s+instructions)",
           Severity.CRITICAL, "Instructions embedded in tool output"),
    _entry("PI-103", "tool-injection", r"\b(?:curl|wget)\s+[^|\n]*\|\s*(?:ba|z)?sh\b",
           Severity.CRITICAL, "Remote script piped to shell"),
    _entry("PI-104", "tool-injection", r"\brm\s+-rf\s+(?:/|~|\$HOME)(?:\s|$)",
           Severity.CRITICAL, "Destructive recursive removal"),
    _entry("PI-105", "tool-injection",
           r"\bIMPORTANT:?\s*(?:before|after)\s+(?:using|calling)\s+this\s+tool\b",
           Severity.HIGH, "Tool description poisoning"),
)


# ---------------------------------------------------------------------------
# Recommendations by category
# ---------------------------------------------------------------------------

DEFAULT_RECOMMENDATION = (
    "Review and sanitize user input before processing. Follow the principle "
    "of least privilege."
)

RECOMMENDATIONS: dict[str, str] = {
    "jailbreak": (
        "Add input validation to detect and reject jailbreak attempts. Harden "
        "the system prompt and layer several defenses."
    ),
    "role-switch": (
        "Lock the agent's role. User input must never redefine the system "
        "role; validate role-related instructions."
    ),
    "instruction-override": (
        "Enforce an instruction hierarchy (system > user) and use canary "
        "tokens to detect instruction manipulation."
    ),
    "data-extraction": (
        "Keep sensitive data out of system prompts and filter model output "
        "to prevent prompt leakage."
    ),
    "encoding": (
        "Strip zero-width and tag characters and decode obfuscated input "
        "before processing it."
    ),
    "social-engineering": (
        "Never trust authority claims made in user input. Use real "
        "authentication instead of prompt-based identity."
    ),
    "multilingual": (
        "Apply injection detection to every supported language and normalize "
        "input before matching."
    ),
    "advanced": (
        "Sanitize input comprehensively, strip model control tokens and "
        "monitor for new injection techniques."
    ),
    "sandbox-escape": (
        "Enforce strict sandbox boundaries, validate file paths and block "
        "traversal sequences and container escape commands."
    ),
    "session-manipulation": (
        "Manage sessions server-side. Never allow prompt-based identity "
        "changes or privilege escalation."
    ),
    "tool-injection": (
        "Validate tool descriptions and outputs and never execute "
        "instructions embedded in tool results."
    ),
}


def recommendation_for(category: str, table: dict[str, str] | None = None) -> str:
    """Return the remediation text for a pattern category."""
    return (table if table is not None else RECOMMENDATIONS).get(
        category, DEFAULT_RECOMMENDATION
    )
