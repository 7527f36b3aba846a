"""Unit tests for the GlobalMe CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from globalme.cli.main import (
    build_arg_parser,
    render_snapshot,
    resolve_targets,
    run_generation_async,
)
from globalme.core.config.models import AppConfig
from globalme.core.generation.errors import GenerationError
from globalme.core.generation.models import SourceImage
from globalme.core.generation.orchestrator import GenerationOrchestrator
from globalme.core.targets.catalog import BUILTIN_TARGETS
from globalme.core.targets.models import TargetConfig
from tests.fixtures.generation import ScriptedGenerator, make_target


class FlakyGenerator(ScriptedGenerator):
    """Fails the first call for each listed target, then succeeds."""

    def __init__(self, flaky_ids: set[str]) -> None:
        super().__init__()
        self._flaky_ids = set(flaky_ids)

    async def generate(self, image_bytes: bytes, media_type: str, target: TargetConfig) -> str:
        if target.target_id in self._flaky_ids:
            self._flaky_ids.discard(target.target_id)
            self.calls.append(target.target_id)
            raise GenerationError("Temporary failure")
        return await super().generate(image_bytes, media_type, target)


@pytest.fixture
def png_source(png_bytes: bytes) -> SourceImage:
    return SourceImage(data=png_bytes, media_type="image/png")


class TestArgParser:
    def test_generate_arguments(self) -> None:
        args = build_arg_parser().parse_args(
            ["generate", "--image", "me.jpg", "--only", "usa,china", "--retry-failed", "2"]
        )
        assert args.cmd == "generate"
        assert args.image == "me.jpg"
        assert args.only == "usa,china"
        assert args.retry_failed == 2
        assert args.app_config == "config.yaml"
        assert args.out is None

    def test_generate_requires_image(self) -> None:
        with pytest.raises(SystemExit):
            build_arg_parser().parse_args(["generate"])

    def test_targets_command(self) -> None:
        args = build_arg_parser().parse_args(["--app-config", "x.json", "targets"])
        assert args.cmd == "targets"
        assert args.app_config == "x.json"


class TestResolveTargets:
    def test_defaults_to_builtins(self) -> None:
        assert resolve_targets(AppConfig()) == BUILTIN_TARGETS

    def test_only_filters(self) -> None:
        selected = resolve_targets(AppConfig(), only="china, usa")
        assert [t.target_id for t in selected] == ["usa", "china"]

    def test_file_from_config(self, tmp_path: Path) -> None:
        path = tmp_path / "targets.json"
        target = make_target("peru", "Peru")
        path.write_text(json.dumps([target.model_dump()]))

        selected = resolve_targets(AppConfig(targets_path=str(path)))

        assert selected == (target,)

    def test_cli_file_overrides_config(self, tmp_path: Path) -> None:
        cli_path = tmp_path / "cli.json"
        cli_path.write_text(json.dumps([make_target("chile").model_dump()]))
        config = AppConfig(targets_path=str(tmp_path / "unused.json"))

        selected = resolve_targets(config, targets_file=str(cli_path))

        assert [t.target_id for t in selected] == ["chile"]


@pytest.mark.asyncio
async def test_run_generation_all_succeed(tmp_path: Path, png_source: SourceImage) -> None:
    generator = ScriptedGenerator(
        {t.target_id: "data:image/png;base64,AAAA" for t in BUILTIN_TARGETS}
    )

    exit_code = await run_generation_async(png_source, BUILTIN_TARGETS, generator, tmp_path)

    assert exit_code == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == sorted(
        f"globalme-{t.target_id}.png" for t in BUILTIN_TARGETS
    )


@pytest.mark.asyncio
async def test_run_generation_reports_failure(tmp_path: Path, png_source: SourceImage) -> None:
    targets = (make_target("alpha"), make_target("beta"))
    generator = ScriptedGenerator(
        {"alpha": "data:image/png;base64,AAAA", "beta": GenerationError("Quota exceeded")}
    )

    exit_code = await run_generation_async(png_source, targets, generator, tmp_path)

    assert exit_code == 1
    assert [p.name for p in tmp_path.iterdir()] == ["globalme-alpha.png"]


@pytest.mark.asyncio
async def test_run_generation_retry_rounds(tmp_path: Path, png_source: SourceImage) -> None:
    targets = (make_target("alpha"), make_target("beta"))
    generator = FlakyGenerator({"beta"})
    generator.results = {t.target_id: "data:image/png;base64,AAAA" for t in targets}

    exit_code = await run_generation_async(
        png_source, targets, generator, tmp_path, retry_rounds=2
    )

    assert exit_code == 0
    assert generator.calls.count("beta") == 2
    assert generator.calls.count("alpha") == 1


@pytest.mark.asyncio
async def test_render_snapshot_lists_every_target(png_source: SourceImage) -> None:
    targets = (make_target("alpha", "Alpha Land"), make_target("beta"))
    generator = ScriptedGenerator({"beta": GenerationError("Quota exceeded")})
    async with GenerationOrchestrator(targets, generator) as orchestrator:
        orchestrator.start(png_source)
        snapshot = await orchestrator.wait_settled()

    table = render_snapshot(snapshot, targets)

    assert table.row_count == 2
    assert list(table.columns[0].cells) == ["Alpha Land", "Beta"]
    assert list(table.columns[2].cells) == ["", "Quota exceeded"]
