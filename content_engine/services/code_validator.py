"""
Static validation of generated Remotion code.

The composition code comes from a generative model and is untrusted. These
pure functions recover the code payload from the raw model output and apply
a deny-by-default allow-list before anything is sent to the render worker.
They do not execute or sandbox anything; isolation is the render worker's job.

Usage:
    result = validate_composition_code(raw_model_output)
    if result.valid:
        dispatch(result.code)
    else:
        print(result.reason)
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple


SANCTIONED_MODULE = "remotion"

ROOT_LAYOUT_PRIMITIVE = "AbsoluteFill"

_FENCE_LINE = re.compile(r"^[ \t]*```[^\n]*$\n?", re.MULTILINE)
_FIRST_IMPORT = re.compile(r"^[ \t]*import\b", re.MULTILINE)

_IMPORT_FROM = re.compile(r"^[ \t]*import\b[^;'\"]*?\bfrom\s*['\"]([^'\"]+)['\"]", re.MULTILINE)
_SIDE_EFFECT_IMPORT = re.compile(r"^[ \t]*import\s*['\"]([^'\"]+)['\"]", re.MULTILINE)
_REEXPORT_FROM = re.compile(r"\bexport\s*(?:\*|\{[^}]*\})\s*from\s*['\"]([^'\"]+)['\"]")

_EXPORT_DEFAULT = re.compile(r"\bexport\s+default\b")
_EXPORT_AS_DEFAULT = re.compile(r"\bexport\s*\{[^}]*\bas\s+default\b[^}]*\}")

_FRAME_TIMING = re.compile(r"\b(?:Sequence|useCurrentFrame)\b")

BANNED_PATTERNS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\beval\s*\("), "dynamic code evaluation (eval)"),
    (re.compile(r"\bnew\s+Function\b|\bFunction\s*\("), "dynamic code evaluation (Function constructor)"),
    (re.compile(r"\brequire\s*\("), "module loading (require)"),
    (re.compile(r"\bimport\s*\("), "module loading (dynamic import)"),
    (re.compile(r"\bprocess\s*[.\[]"), "process/environment access"),
    (re.compile(r"child_process"), "subprocess spawning (child_process)"),
    (
        re.compile(r"(?<![.\w])(?:spawn|spawnSync|exec|execSync|execFile|execFileSync|fork)\s*\("),
        "subprocess spawning",
    ),
    (re.compile(r"\bfs\s*\.|\bfs/promises\b|['\"]node:"), "filesystem access"),
    (re.compile(r"\b__dirname\b|\b__filename\b"), "filesystem path access"),
    (re.compile(r"\bconstructor\b"), "dynamic code evaluation (constructor chain)"),
    (
        re.compile(r"\b(?:window|self|global|globalThis)\s*(?:\?\.\s*)?\["),
        "dynamic code evaluation (computed global lookup)",
    ),
    (re.compile(r"\bglobalThis\b"), "global object access"),
    (re.compile(r"\b(?:Deno|Bun)\s*\."), "runtime API access"),
]


@dataclass(frozen=True)
class CodeValidationResult:
    valid: bool
    code: str
    reason: Optional[str] = None


def clean_generated_code(text: str) -> str:
    """
    Recover the code payload from raw model output.

    Removes Markdown fence lines, prose before the first import and prose
    after the default export statement.
    """
    cleaned = _FENCE_LINE.sub("", text or "").strip()

    first_import = _FIRST_IMPORT.search(cleaned)
    if first_import and first_import.start() > 0:
        cleaned = cleaned[first_import.start():].lstrip()

    exports = list(_EXPORT_DEFAULT.finditer(cleaned))
    if exports:
        end = _end_of_statement(cleaned, exports[-1].end())
        cleaned = cleaned[:end]

    return cleaned.strip()


def _end_of_statement(code: str, start: int) -> int:
    """Find where the statement beginning at ``start`` ends, by bracket matching."""
    depth = 0
    i = start
    n = len(code)
    while i < n:
        ch = code[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth -= 1
            if depth <= 0:
                j = i + 1
                while j < n and code[j] in " \t":
                    j += 1
                # A function body, arrow, return type or member access follows
                if j < n and code[j] in "{=:.":
                    depth = 0
                    i = j
                    continue
                if j < n and code[j] == ";":
                    return j + 1
                return i + 1
        elif depth == 0 and ch == ";":
            return i + 1
        elif depth == 0 and ch == "\n" and code[start:i].strip():
            return i
        i += 1
    return n


def _imported_modules(code: str) -> List[str]:
    modules = []
    for pattern in (_IMPORT_FROM, _SIDE_EFFECT_IMPORT, _REEXPORT_FROM):
        modules.extend(match.group(1) for match in pattern.finditer(code))
    return modules


def check_composition_code(code: str) -> Optional[str]:
    """
    Apply the allow-list checks to cleaned code.

    Returns None when the code passes, otherwise the reason it was rejected.
    """
    if not code.strip():
        return "No code found in model output"

    modules = _imported_modules(code)
    if SANCTIONED_MODULE not in modules:
        return f"Missing {SANCTIONED_MODULE} import"
    for module in modules:
        if module != SANCTIONED_MODULE:
            return f"Disallowed import '{module}': only '{SANCTIONED_MODULE}' may be imported"

    default_exports = len(_EXPORT_DEFAULT.findall(code)) + len(_EXPORT_AS_DEFAULT.findall(code))
    if default_exports == 0:
        return "Missing default export"
    if default_exports > 1:
        return f"Expected exactly one default export, found {default_exports}"

    for pattern, description in BANNED_PATTERNS:
        match = pattern.search(code)
        if match:
            return f"Dangerous pattern detected: {description} ({match.group(0).strip()!r})"

    if not re.search(rf"\b{ROOT_LAYOUT_PRIMITIVE}\b", code):
        return f"Missing {ROOT_LAYOUT_PRIMITIVE} component"

    if "return" not in code or "<" not in code:
        return "Invalid React component structure"

    if not _FRAME_TIMING.search(code):
        return "Missing frame-based timing (Sequence or useCurrentFrame)"

    return None


def validate_composition_code(text: str) -> CodeValidationResult:
    """Clean raw model output and validate the recovered code."""
    code = clean_generated_code(text)
    reason = check_composition_code(code)
    return CodeValidationResult(valid=reason is None, code=code, reason=reason)
