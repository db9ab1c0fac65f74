"""
Unit Tests for fix application
"""
import pytest
from app.core.exceptions import FixApplyError, ForbiddenPathError
from app.services.fix_applier import (
    FileBlock,
    apply_fix,
    apply_fix_blocks,
    check_writable_path,
    parse_file_blocks,
)
from tests.mocks.mock_claude import DEFAULT_FIX_RESPONSE


class TestParseFileBlocks:
    """Tests for extracting <file> blocks from model output"""

    def test_single_block(self):
        """Test the default mock response"""
        blocks, explanation = parse_file_blocks(DEFAULT_FIX_RESPONSE)

        assert len(blocks) == 1
        assert blocks[0].path == "src/App.jsx"
        assert blocks[0].content.startswith('import React from "react";')
        assert blocks[0].content.endswith("}")
        assert explanation == ""

    def test_explanation_outside_blocks(self):
        """Test prose around blocks is kept as the explanation"""
        text = 'Added the missing import.\n<file path="a.js">x</file>\nDone.'
        blocks, explanation = parse_file_blocks(text)

        assert [b.path for b in blocks] == ["a.js"]
        assert explanation == "Added the missing import.\n\nDone."

    def test_last_block_for_path_wins(self):
        """Test repeated paths keep the final content and first position"""
        text = (
            '<file path="a.js">one</file>'
            '<file path="b.js">two</file>'
            '<file path="a.js">three</file>'
        )
        blocks, _ = parse_file_blocks(text)

        assert [(b.path, b.content) for b in blocks] == [("a.js", "three"), ("b.js", "two")]

    def test_code_fence_stripped(self):
        """Test markdown fences inside a block are removed"""
        text = '<file path="src/App.jsx">\n```jsx\nconst a = 1;\n```\n</file>'
        blocks, _ = parse_file_blocks(text)

        assert blocks[0].content == "const a = 1;"

    def test_no_blocks(self):
        """Test plain text and empty input"""
        assert parse_file_blocks("I could not find a fix.") == ([], "I could not find a fix.")
        assert parse_file_blocks("") == ([], "")


class TestCheckWritablePath:
    """Tests for write path validation"""

    @pytest.mark.parametrize("path,expected", [
        ("src/App.jsx", "src/App.jsx"),
        ("./src/App.jsx", "src/App.jsx"),
        ("src\\components\\Nav.jsx", "src/components/Nav.jsx"),
        ("package.json", "package.json"),
    ])
    def test_allowed(self, path, expected):
        """Test ordinary project paths"""
        assert check_writable_path(path) == expected

    @pytest.mark.parametrize("path", [
        "",
        "   ",
        "/etc/passwd",
        "C:/Windows/system.ini",
        "../outside.js",
        "src/../../escape.js",
        ".git/config",
        "src/.git/HEAD",
        ".env",
        ".env.local",
        "package-lock.json",
        "yarn.lock",
        "sub/pnpm-lock.yaml",
        "bun.lockb",
    ])
    def test_forbidden(self, path):
        """Test traversal, metadata, secrets and lock files are refused"""
        with pytest.raises(ForbiddenPathError):
            check_writable_path(path)


class TestApplyFixBlocks:
    """Tests for writing blocks into a sandbox"""

    @pytest.mark.asyncio
    async def test_writes_files(self, local_sandbox, project_dir):
        """Test new and existing files are written"""
        modified = await apply_fix_blocks(local_sandbox, [
            FileBlock(path="src/App.jsx", content="export default () => null;"),
            FileBlock(path="src/components/Header.jsx", content="export const Header = 1;"),
        ])

        assert modified == ["src/App.jsx", "src/components/Header.jsx"]
        assert (project_dir / "src" / "App.jsx").read_text() == "export default () => null;"
        assert (project_dir / "src" / "components" / "Header.jsx").exists()

    @pytest.mark.asyncio
    async def test_one_forbidden_path_writes_nothing(self, local_sandbox, project_dir):
        """Test validation happens before any write"""
        original = (project_dir / "src" / "App.jsx").read_text()

        with pytest.raises(ForbiddenPathError):
            await apply_fix_blocks(local_sandbox, [
                FileBlock(path="src/App.jsx", content="changed"),
                FileBlock(path="package-lock.json", content="{}"),
            ])

        assert (project_dir / "src" / "App.jsx").read_text() == original
        assert not (project_dir / "package-lock.json").exists()

    @pytest.mark.asyncio
    async def test_failed_write_lists_written_files(self, local_sandbox, project_dir):
        """Test a write error part-way reports what was already written"""
        with pytest.raises(FixApplyError) as exc_info:
            await apply_fix_blocks(local_sandbox, [
                FileBlock(path="package.json", content="{}"),
                FileBlock(path="src", content="not a directory"),
                FileBlock(path="src/App.jsx", content="never written"),
            ])

        assert exc_info.value.written_files == ["package.json"]
        assert exc_info.value.code == "FIX_APPLY_FAILED"
        assert exc_info.value.details["file_path"] == "src"
        assert (project_dir / "package.json").read_text() == "{}"
        assert (project_dir / "src" / "App.jsx").read_text() != "never written"


class TestApplyFix:
    """Tests for the apply entry point"""

    @pytest.mark.asyncio
    async def test_success(self, local_sandbox, project_dir):
        """Test a model response is applied"""
        result = await apply_fix(local_sandbox, DEFAULT_FIX_RESPONSE)

        assert result.success is True
        assert result.modified_files == ["src/App.jsx"]
        assert result.fixed_code == DEFAULT_FIX_RESPONSE
        assert "Hello" in (project_dir / "src" / "App.jsx").read_text()

    @pytest.mark.asyncio
    async def test_no_blocks(self, local_sandbox):
        """Test output without blocks is reported, not raised"""
        result = await apply_fix(local_sandbox, "Sorry, nothing to fix.")

        assert result.success is False
        assert result.error == "No <file> blocks found in fix output"
        assert result.explanation == "Sorry, nothing to fix."
        assert result.modified_files == []

    @pytest.mark.asyncio
    async def test_forbidden_path_reported(self, local_sandbox):
        """Test a refused path becomes an error response"""
        result = await apply_fix(local_sandbox, '<file path=".env">SECRET=1</file>')

        assert result.success is False
        assert ".env" in result.error
        assert result.modified_files == []

    @pytest.mark.asyncio
    async def test_wire_format(self, local_sandbox):
        """Test camelCase keys on the wire"""
        wire = (await apply_fix(local_sandbox, DEFAULT_FIX_RESPONSE)).to_wire()

        assert wire["modifiedFiles"] == ["src/App.jsx"]
        assert "fixedCode" in wire

    @pytest.mark.asyncio
    async def test_failed_write_reported(self, local_sandbox, project_dir):
        """Test a write error becomes an error response with the files already written"""
        fixed_code = (
            '<file path="package.json">{"name": "fixed"}</file>\n'
            '<file path="src">oops</file>'
        )

        result = await apply_fix(local_sandbox, fixed_code)

        assert result.success is False
        assert result.modified_files == ["package.json"]
        assert "'src'" in result.error
        assert (project_dir / "package.json").read_text() == '{"name": "fixed"}'
