"""
Tests for the Generator session controller.

The host is played by an in-memory QueueChannel; output goes to tmp_path.
Coroutines are driven with asyncio.run.
"""

import asyncio
import logging
from pathlib import Path

import pytest

from codegen_templating.config import (
    GenerationOptions,
    ModelGenerationOptions,
    ModelOptions,
    OutputMode,
)
from codegen_templating.generator import (
    EmptyModelError,
    Generator,
    GeneratorError,
    current_generator,
    is_missing_model,
    use_generator,
)
from codegen_templating.messages import MessageCommand
from codegen_templating.model.transforms import (
    ModelTransform,
    RenameTargets,
    RenamingTransform,
    capitalize,
)
from codegen_templating.writer import CommentRegionMarkerFormatter

from .conftest import model_host

STARTED = MessageCommand.PROCESS_STARTED
GEN_STARTED = MessageCommand.GENERATE_STARTED
GEN_FINISHED = MessageCommand.GENERATE_FINISHED
GET_MODEL = MessageCommand.GET_MODEL

DOCUMENT = {
    "model": {
        "elementType": "model",
        "name": "Shop",
        "packagedElements": [
            {"id": "c1", "elementType": "class", "name": "order", "ownedAttributes": []},
        ],
    },
    "profiles": [],
}


class NameListTransform(ModelTransform):
    def transform(self, source):
        return [e["name"] for e in source["packagedElements"]]


class TestStartup:
    def test_announces_process_started(self, make_generator, host):
        make_generator(host)
        assert host.commands == [STARTED]

    def test_parses_template_args(self, make_generator, host):
        generator = make_generator(host, argv=["worker", "--templateArgs", '{"namespace": "Shop"}'])
        assert generator.template_args == {"namespace": "Shop"}

    def test_template_args_default_to_none(self, make_generator, host):
        assert make_generator(host).template_args is None

    def test_output_mode_from_args(self, make_generator, host):
        generator = make_generator(host, argv=["worker", "--outputMode", "append"])
        assert generator.output_mode is OutputMode.APPEND

    def test_unknown_output_mode_is_ignored(self, make_generator, host):
        generator = make_generator(host, argv=["worker", "--outputMode", "sometimes"])
        assert generator.output_mode is OutputMode.OVERWRITE

    def test_working_dir_is_launch_dir(self, host, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        generator = Generator(host, argv=[])
        assert generator.working_dir == Path.cwd()


class TestGenerate:
    def test_writes_output_file(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)

        asyncio.run(generator.generate(
            GenerationOptions("out.txt"),
            lambda writer: writer.write_line("hello"),
        ))

        assert (tmp_path / "out.txt").read_bytes().decode("utf-8").splitlines() == ["hello"]
        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED]

    def test_creates_missing_directories(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)

        asyncio.run(generator.generate(
            GenerationOptions("src/generated/model.cs"),
            lambda writer: writer.write("x"),
        ))

        assert (tmp_path / "src" / "generated" / "model.cs").read_text() == "x"

    def test_overwrite_truncates(self, make_generator, host, tmp_path: Path):
        (tmp_path / "out.txt").write_text("old contents that are longer")
        generator = make_generator(host)

        asyncio.run(generator.generate(
            GenerationOptions("out.txt", OutputMode.OVERWRITE),
            lambda writer: writer.write("new"),
        ))

        assert (tmp_path / "out.txt").read_text() == "new"

    def test_once_keeps_existing_file(self, make_generator, host, tmp_path: Path):
        target = tmp_path / "out.txt"
        target.write_bytes(b"hand edited\r\n")
        generator = make_generator(host)
        calls = []

        asyncio.run(generator.generate(
            GenerationOptions("out.txt", OutputMode.ONCE),
            lambda writer: calls.append(writer),
        ))

        assert calls == []
        assert target.read_bytes() == b"hand edited\r\n"
        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED]

    def test_once_creates_missing_file(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)

        asyncio.run(generator.generate(
            GenerationOptions("out.txt", OutputMode.ONCE),
            lambda writer: writer.write("first"),
        ))

        assert (tmp_path / "out.txt").read_text() == "first"

    def test_append(self, make_generator, host, tmp_path: Path):
        (tmp_path / "out.txt").write_bytes(b"A\n")
        generator = make_generator(host)

        asyncio.run(generator.generate(
            GenerationOptions("out.txt", OutputMode.APPEND),
            lambda writer: writer.write("B"),
        ))

        assert (tmp_path / "out.txt").read_bytes() == b"A\nB"

    def test_default_mode_from_args(self, make_generator, host, tmp_path: Path):
        (tmp_path / "out.txt").write_text("keep")
        generator = make_generator(host, argv=["worker", "--outputMode", "once"])

        asyncio.run(generator.generate(
            GenerationOptions("out.txt"),
            lambda writer: writer.write("replaced"),
        ))

        assert (tmp_path / "out.txt").read_text() == "keep"

    def test_call_mode_overrides_default(self, make_generator, host, tmp_path: Path):
        (tmp_path / "out.txt").write_text("keep")
        generator = make_generator(host, argv=["worker", "--outputMode", "once"])

        asyncio.run(generator.generate(
            GenerationOptions("out.txt", OutputMode.OVERWRITE),
            lambda writer: writer.write("replaced"),
        ))

        assert (tmp_path / "out.txt").read_text() == "replaced"

    def test_region_marker_formatter_option(self, make_generator, host, tmp_path: Path):
        (tmp_path / "custom.py").write_text("# <extra>\nx = 1\n# </extra>\n")
        generator = make_generator(host)
        found = []

        def template(writer):
            writer.end_of_line_string = "\n"
            found.append(writer.write_file_region("extra", "custom.py"))

        asyncio.run(generator.generate(
            GenerationOptions("out.py", region_marker_formatter=CommentRegionMarkerFormatter("#")),
            template,
        ))

        assert found == [True]
        assert (tmp_path / "out.py").read_text() == "x = 1\n\n"

    def test_each_call_gets_a_fresh_writer(self, make_generator, host):
        generator = make_generator(host)
        writers = []

        async def scenario():
            for name in ("a.txt", "b.txt"):
                await generator.generate(GenerationOptions(name), writers.append)

        asyncio.run(scenario())
        assert writers[0] is not writers[1]

    def test_open_failure_still_finishes(self, make_generator, host, tmp_path: Path):
        (tmp_path / "taken").mkdir()
        generator = make_generator(host)

        with pytest.raises(OSError):
            asyncio.run(generator.generate(GenerationOptions("taken"), lambda writer: None))

        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED]

    def test_template_error_still_finishes(self, make_generator, host):
        generator = make_generator(host)

        def template(writer):
            writer.write_line("partial")
            raise ValueError("template bug")

        with pytest.raises(ValueError, match="template bug"):
            asyncio.run(generator.generate(GenerationOptions("out.txt"), template))

        assert host.commands[-1] is GEN_FINISHED


class TestGenerateAsync:
    def test_file_closed_after_completion(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)
        order = []

        async def template(writer):
            writer.write("one")
            await asyncio.sleep(0)
            writer.write("two")
            order.append("template done")

        async def scenario():
            await generator.generate_async(GenerationOptions("out.txt"), template)
            order.append("generate returned")

        asyncio.run(scenario())

        assert order == ["template done", "generate returned"]
        assert (tmp_path / "out.txt").read_text() == "onetwo"
        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED]


class TestGenerateFromModel:
    def test_model_document_is_read(self, make_generator, tmp_path: Path):
        host = model_host(DOCUMENT)
        generator = make_generator(host)
        models = []

        def template(writer, model):
            models.append(model)
            writer.write(model["name"])

        asyncio.run(generator.generate_from_model(ModelGenerationOptions("out.txt"), template))

        assert models == [DOCUMENT["model"]]
        assert (tmp_path / "out.txt").read_text() == "Shop"
        assert host.commands == [STARTED, GET_MODEL, GEN_STARTED, GEN_FINISHED]

    def test_no_parse_returns_plain_json(self, make_generator):
        generator = make_generator(model_host(DOCUMENT))
        models = []

        asyncio.run(generator.generate_from_model(
            ModelGenerationOptions("out.txt", no_parse=True),
            lambda writer, model: models.append(model),
        ))

        assert models == [DOCUMENT]

    def test_plain_json_is_passed_through(self, make_generator):
        generator = make_generator(model_host({"tables": ["orders"]}))
        model = asyncio.run(generator.get_model())
        assert model == {"tables": ["orders"]}

    def test_transform_is_applied(self, make_generator):
        generator = make_generator(model_host(DOCUMENT))
        models = []

        asyncio.run(generator.generate_from_model(
            ModelGenerationOptions("out.txt", model_transform=NameListTransform()),
            lambda writer, model: models.append(model),
        ))

        assert models == [["order"]]

    def test_renaming_transform(self, make_generator):
        document = {
            "model": {
                "elementType": "model",
                "packagedElements": [{"elementType": "class", "name": "order"}],
            }
        }
        generator = make_generator(model_host(document))
        options = ModelOptions(model_transform=RenamingTransform(capitalize, RenameTargets.CLASSES))

        model = asyncio.run(generator.get_model(options))

        assert model["packagedElements"][0]["name"] == "Order"

    def test_async_template(self, make_generator, tmp_path: Path):
        generator = make_generator(model_host(DOCUMENT))

        async def template(writer, model):
            await asyncio.sleep(0)
            writer.write(model["packagedElements"][0]["name"])

        asyncio.run(generator.generate_from_model_async(ModelGenerationOptions("out.txt"), template))

        assert (tmp_path / "out.txt").read_text() == "order"

    def test_empty_model_skips_generation(self, make_generator, tmp_path: Path, caplog):
        host = model_host(None)
        generator = make_generator(host)
        calls = []

        with caplog.at_level(logging.ERROR):
            asyncio.run(generator.generate_from_model(
                ModelGenerationOptions("out.txt"),
                lambda writer, model: calls.append(model),
            ))

        assert calls == []
        assert not (tmp_path / "out.txt").exists()
        assert host.commands == [STARTED, GET_MODEL]
        assert "empty model" in caplog.text

    def test_empty_model_skips_async_generation(self, make_generator, tmp_path: Path):
        generator = make_generator(model_host(None))

        async def template(writer, model):
            raise AssertionError("must not be called")

        asyncio.run(generator.generate_from_model_async(ModelGenerationOptions("out.txt"), template))
        assert not (tmp_path / "out.txt").exists()


class TestGetModel:
    def test_empty_model_rejects(self, make_generator):
        generator = make_generator(model_host(None))
        with pytest.raises(EmptyModelError, match="empty model"):
            asyncio.run(generator.get_model())

    def test_ignores_other_messages_before_set_model(self, make_generator, host):
        from codegen_templating.messages import ProcessMessage

        generator = make_generator(host)
        host.deliver(ProcessMessage(MessageCommand.GENERATE_STARTED))
        host.deliver(ProcessMessage.set_model({"x": 1}))

        assert asyncio.run(generator.get_model()) == {"x": 1}

    def test_transform_skipped_for_none_model(self, make_generator):
        class Unreadable:
            def can_read(self, data):
                return True

            def read_document(self, data):
                return None

        generator = make_generator(model_host({"x": 1}), model_reader=Unreadable())
        options = ModelOptions(model_transform=NameListTransform())
        assert asyncio.run(generator.get_model(options)) is None


class TestModelPresence:
    @pytest.mark.parametrize("model_data", [{}, []])
    def test_empty_containers_reach_the_template(self, make_generator, tmp_path: Path, model_data):
        generator = make_generator(model_host(model_data))
        seen = []

        asyncio.run(generator.generate_from_model(
            ModelGenerationOptions("out.txt"),
            lambda writer, model: seen.append(model),
        ))

        assert seen == [model_data]
        assert (tmp_path / "out.txt").exists()

    @pytest.mark.parametrize("model_data", [None, "", 0, False])
    def test_absent_model_is_rejected(self, make_generator, model_data):
        generator = make_generator(model_host(model_data))
        with pytest.raises(EmptyModelError):
            asyncio.run(generator.get_model())

    @pytest.mark.parametrize("model_data,missing", [
        (None, True),
        (False, True),
        (0, True),
        (0.0, True),
        ("", True),
        ({}, False),
        ([], False),
        (1, False),
        (True, False),
        ("model", False),
    ])
    def test_is_missing_model(self, model_data, missing):
        assert is_missing_model(model_data) is missing


class TestPendingWork:
    def test_unawaited_work_runs_in_call_order(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)
        order = []

        generator.generate(GenerationOptions("a.txt"), lambda writer: order.append("a"))
        generator.generate(GenerationOptions("b.txt"), lambda writer: order.append("b"))
        asyncio.run(generator.run_pending())

        assert order == ["a", "b"]
        assert (tmp_path / "a.txt").exists()
        assert (tmp_path / "b.txt").exists()
        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED, GEN_STARTED, GEN_FINISHED]

    def test_awaited_work_is_not_run_twice(self, make_generator, host):
        generator = make_generator(host)
        calls = []

        async def scenario():
            await generator.generate(GenerationOptions("a.txt"), calls.append)
            await generator.run_pending()

        asyncio.run(scenario())
        assert len(calls) == 1

    def test_unawaited_build_feeds_later_generation(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)

        generator.build_model(lambda: {"name": "Built"})
        generator.generate_from_model(
            ModelGenerationOptions("out.txt"),
            lambda writer, model: writer.write(model["name"]),
        )
        asyncio.run(generator.run_pending())

        assert (tmp_path / "out.txt").read_text() == "Built"
        assert GET_MODEL not in host.commands

    def test_discard_pending_drops_unstarted_work(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)

        generator.generate(GenerationOptions("a.txt"), lambda writer: writer.write("A"))
        generator.discard_pending()
        asyncio.run(generator.run_pending())

        assert not (tmp_path / "a.txt").exists()
        assert host.commands == [STARTED]


class TestBuildModel:
    def test_built_model_is_used_without_host(self, make_generator, host):
        generator = make_generator(host)

        async def builder():
            await asyncio.sleep(0)
            return {"elementType": "model", "packagedElements": [{"name": "built"}]}

        async def scenario():
            built = await generator.build_model(builder)
            model = await generator.get_model(ModelOptions(model_transform=NameListTransform()))
            return built, model

        built, model = asyncio.run(scenario())

        assert built["packagedElements"][0]["name"] == "built"
        assert model == ["built"]
        assert GET_MODEL not in host.commands
        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED]

    def test_sync_builder(self, make_generator, host):
        generator = make_generator(host)
        model = asyncio.run(generator.build_model(lambda: {"name": "sync"}))
        assert model == {"name": "sync"}

    def test_get_model_waits_for_build_in_flight(self, make_generator, host):
        generator = make_generator(host)

        async def scenario():
            release = asyncio.Event()

            async def builder():
                await release.wait()
                return {"name": "late"}

            build = asyncio.ensure_future(generator.build_model(builder))
            await asyncio.sleep(0)
            pending = asyncio.ensure_future(generator.get_model())
            await asyncio.sleep(0)
            assert not pending.done()

            release.set()
            return await build, await pending

        built, model = asyncio.run(scenario())

        assert built == model == {"name": "late"}
        assert GET_MODEL not in host.commands

    def test_generate_from_built_model(self, make_generator, host, tmp_path: Path):
        generator = make_generator(host)

        async def scenario():
            await generator.build_model(lambda: {"name": "Built"})
            await generator.generate_from_model(
                ModelGenerationOptions("out.txt"),
                lambda writer, model: writer.write(model["name"]),
            )

        asyncio.run(scenario())

        assert (tmp_path / "out.txt").read_text() == "Built"
        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED, GEN_STARTED, GEN_FINISHED]

    def test_builder_error_propagates(self, make_generator, host):
        generator = make_generator(host)

        async def builder():
            raise ValueError("cannot build")

        with pytest.raises(ValueError, match="cannot build"):
            asyncio.run(generator.build_model(builder))

        assert host.commands == [STARTED, GEN_STARTED, GEN_FINISHED]


class TestCurrentGenerator:
    def test_no_active_generator(self):
        with pytest.raises(GeneratorError):
            current_generator()

    def test_use_generator(self, make_generator, host):
        generator = make_generator(host)
        with use_generator(generator):
            assert current_generator() is generator
        with pytest.raises(GeneratorError):
            current_generator()
