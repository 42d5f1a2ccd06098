import pytest

from mdchunker.config.chunking.models import ChunkerConfig, StrategyConfig
from mdchunker.config.chunking.presets import document_level_config, hierarchical_config
from mdchunker.services.chunking.assembler import ChunkAssembler
from mdchunker.services.chunking.chunker import MarkdownChunker, chunk_documents, chunk_markdown
from mdchunker.services.chunking.errors import ChunkerError, ErrorHandler, ErrorHandlingMode, ErrorType
from mdchunker.services.chunking.parser import parse_markdown

LONG_PARAGRAPH = "x" * 50
SOURCE = "# Guide\n\nIntro text.\n\n## Install\n\nRun the installer.\n\n## Use\n\nCall the API."


def test_strict_mode_aborts_with_no_chunks():
    chunker = MarkdownChunker(ChunkerConfig(max_chunk_size=10, error_handling=ErrorHandlingMode.STRICT))
    result = chunker.chunk("# Heading\n\n" + LONG_PARAGRAPH)
    assert result.chunks == []
    assert result.error.error_type == ErrorType.CHUNK_TOO_LARGE
    with pytest.raises(ChunkerError) as exc:
        chunker.chunk_document("# Heading\n\n" + LONG_PARAGRAPH)
    assert exc.value.error_type == ErrorType.CHUNK_TOO_LARGE


def test_permissive_mode_truncates_and_records_one_error():
    chunker = MarkdownChunker(ChunkerConfig(max_chunk_size=10))
    result = chunker.chunk(LONG_PARAGRAPH)
    (chunk,) = result.chunks
    assert chunk.content == "x" * 10
    assert chunk.metadata["truncated"] == "true"
    assert chunk.metadata["original_size"] == "50"
    assert len(result.errors) == 1
    context = result.errors[0].context
    assert context["chunk_type"] == "paragraph"
    assert context["chunk_size"] == 50
    assert context["max_size"] == 10
    assert result.error is not None
    assert result.error.error_type == ErrorType.CHUNK_TOO_LARGE


def test_silent_mode_records_but_reports_nothing():
    chunker = MarkdownChunker(ChunkerConfig(max_chunk_size=10, error_handling="silent"))
    result = chunker.chunk(LONG_PARAGRAPH)
    assert result.error is None
    assert len(result.chunks) == 1
    assert chunker.error_count() == 1


def test_error_log_accumulates_until_cleared():
    chunker = MarkdownChunker(ChunkerConfig(max_chunk_size=10))
    chunker.chunk(LONG_PARAGRAPH)
    second = chunker.chunk(LONG_PARAGRAPH)
    assert len(second.errors) == 1
    assert chunker.error_count() == 2
    chunker.clear_errors()
    assert not chunker.has_errors()


def test_chunking_is_deterministic():
    chunker = MarkdownChunker(ChunkerConfig(chunking_strategy=hierarchical_config(2)))
    first = chunker.chunk_document(SOURCE)
    second = chunker.chunk_document(SOURCE)
    assert first == second
    assert [c.hash for c in first] == [c.hash for c in MarkdownChunker(chunker.config).chunk_document(SOURCE)]


def test_switching_strategy_restarts_ids():
    chunker = MarkdownChunker()
    assert [c.id for c in chunker.chunk_document(SOURCE)] == list(range(6))
    chunker.set_strategy("hierarchical", hierarchical_config(2))
    chunks = chunker.chunk_document(SOURCE)
    assert [c.id for c in chunks] == [0, 1, 2]
    assert chunker.strategy_name == "hierarchical"


def test_unknown_strategy_raises():
    with pytest.raises(ChunkerError) as exc:
        MarkdownChunker(ChunkerConfig(chunking_strategy=StrategyConfig(name="nope")))
    assert exc.value.error_type == ErrorType.STRATEGY_NOT_FOUND

    chunker = MarkdownChunker()
    with pytest.raises(ChunkerError):
        chunker.set_strategy("nope")
    assert chunker.strategy_name == "element-level"


def test_invalid_config_falls_back_to_defaults():
    chunker = MarkdownChunker(ChunkerConfig(max_chunk_size=-1, enabled_types=["chapter"]))
    assert chunker.config == ChunkerConfig()
    assert len(chunker.get_errors_by_type(ErrorType.CONFIG_INVALID)) == 1
    assert len(chunker.chunk_document("para")) == 1


def test_invalid_strategy_config_keeps_engine_config():
    config = ChunkerConfig(
        chunking_strategy=StrategyConfig(name="hierarchical", max_depth=2, min_depth=3),
        max_chunk_size=100,
        extractors=["links"],
    )
    chunker = MarkdownChunker(config)
    assert chunker.strategy_name == "hierarchical"
    assert chunker.strategy.config.max_depth == 0
    assert chunker.config.max_chunk_size == 100
    assert chunker.config.extractors == ["links"]
    assert chunker.error_count() == 1


def test_invalid_config_raises_in_strict_mode():
    with pytest.raises(ChunkerError) as exc:
        MarkdownChunker(ChunkerConfig(memory_limit=-5, error_handling="strict"))
    assert exc.value.error_type == ErrorType.CONFIG_INVALID


@pytest.mark.parametrize("source", [None, "", b"\xff\xfe"])
def test_invalid_input(source):
    chunker = MarkdownChunker()
    result = chunker.chunk(source)
    assert result.chunks == []
    assert [e.error_type for e in result.errors] == [ErrorType.INVALID_INPUT]


def test_bytes_input_is_decoded():
    assert MarkdownChunker().chunk_document("# Tïtle".encode("utf-8"))[0].content == "# Tïtle"


def test_memory_limit_rejects_large_documents():
    chunker = MarkdownChunker(ChunkerConfig(memory_limit=10))
    result = chunker.chunk("x" * 20)
    assert result.chunks == []
    assert result.errors[0].error_type == ErrorType.MEMORY_EXHAUSTED
    assert result.errors[0].context["memory_limit"] == 10


def test_enabled_types_filter_every_strategy():
    config = ChunkerConfig(enabled_types=["heading"], chunking_strategy=hierarchical_config(2))
    chunks = MarkdownChunker(config).chunk_document(SOURCE)
    assert [c.content for c in chunks] == ["# Guide", "## Install", "## Use"]


def test_empty_chunks_are_filtered():
    assembler = ChunkAssembler(ChunkerConfig(), StrategyConfig(), ErrorHandler())
    assert assembler.finalize(assembler.open(chunk_type="custom")) is None
    assert assembler.finish() == []

    keeping = ChunkAssembler(ChunkerConfig(filter_empty_chunks=False), StrategyConfig(), ErrorHandler())
    keeping.finalize(keeping.open(chunk_type="custom"))
    assert [c.content for c in keeping.finish()] == [""]


def test_blank_document_still_yields_one_document_chunk():
    config = ChunkerConfig(chunking_strategy=document_level_config())
    (chunk,) = MarkdownChunker(config).chunk_document("   \n\n")
    assert chunk.type == "document"
    assert chunk.content == ""
    (kept,) = MarkdownChunker(config.model_copy(update={"preserve_whitespace": True})).chunk_document("   \n\n")
    assert kept.content == "   \n\n"


def test_chunk_tree_uses_parsed_document():
    result = MarkdownChunker().chunk_tree(parse_markdown("a\n\nb"))
    assert [c.content for c in result.chunks] == ["a", "b"]
    assert result.strategy == "element-level"
    assert result.ok


def test_performance_stats_track_the_last_run():
    chunker = MarkdownChunker()
    result = chunker.chunk(SOURCE)
    assert result.stats.total_chunks == 6
    assert result.stats.total_bytes == len(SOURCE.encode("utf-8"))
    assert chunker.get_performance_stats().total_chunks == 6
    chunker.reset_performance_stats()
    assert chunker.get_performance_stats().total_chunks == 0


def test_chunk_markdown_helper():
    assert [c.type for c in chunk_markdown("# a\n\nb")] == ["heading", "paragraph"]


def test_chunk_documents_keeps_input_order():
    sources = [f"# Doc {i}\n\nbody {i}" for i in range(8)]
    results = chunk_documents(sources, ChunkerConfig(chunking_strategy=hierarchical_config(1)), max_workers=4)
    assert [r.chunks[0].content for r in results] == [f"# Doc {i}\n\nbody {i}" for i in range(8)]


def test_chunk_documents_setup_runs_per_engine():
    seen = []

    def setup(chunker):
        seen.append(chunker)
        chunker.set_strategy("document-level")

    results = chunk_documents(["a\n\nb", "c"], setup=setup, max_workers=2)
    assert [len(r.chunks) for r in results] == [1, 1]
    assert len(seen) == 2
    assert seen[0] is not seen[1]


def test_list_does_not_absorb_following_blocks():
    chunks = MarkdownChunker().chunk_document("- one\n- two\n\nA paragraph.\n\n# Heading")
    assert [(c.type, c.content) for c in chunks] == [
        ("list", "- one\n- two"),
        ("paragraph", "A paragraph."),
        ("heading", "# Heading"),
    ]
    grouped = MarkdownChunker(ChunkerConfig(chunking_strategy=hierarchical_config(2)))
    assert [c.content for c in grouped.chunk_document("# A\n\n- x\n\n# B\n\nbody")] == ["# A\n\n- x", "# B\n\nbody"]
