import numpy as np
from prometheus_client import REGISTRY

from murmur.audio.types import Segment
from murmur.pipeline.processor import SegmentProcessor
from murmur.pipeline.types import SegmentOutcome
from tests.fakes import SAMPLE_RATE, RecordingSink, StubCleaner, StubContext, StubTranscriber


def _segment(seconds: float) -> Segment:
    return Segment(samples=np.full(int(seconds * SAMPLE_RATE), 0.1, dtype=np.float32), sample_rate=SAMPLE_RATE)


def _sample(name, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels or None) or 0.0


def _processor(transcriber, **kwargs):
    completions = []
    kwargs.setdefault("sinks", [RecordingSink()])
    processor = SegmentProcessor(transcriber, on_complete=lambda: completions.append(1), **kwargs)
    return processor, completions


def test_empty_segment_is_dropped():
    transcriber = StubTranscriber("never used at all")
    processor, completions = _processor(transcriber)
    result = processor.process(Segment(samples=np.zeros(0, dtype=np.float32), sample_rate=SAMPLE_RATE))
    assert result.outcome is SegmentOutcome.EMPTY
    assert transcriber.calls == []
    assert completions == [1]


def test_short_segment_never_reaches_asr():
    transcriber = StubTranscriber("this should not happen here")
    sink = RecordingSink()
    processor, completions = _processor(transcriber, sinks=[sink])
    before = _sample("murmur_segments_total", outcome="too_short")

    result = processor.process(_segment(1.0))

    assert result.outcome is SegmentOutcome.TOO_SHORT
    assert result.outcome.dropped
    assert transcriber.calls == []
    assert sink.received == []
    assert completions == [1]
    assert _sample("murmur_segments_total", outcome="too_short") == before + 1


def test_asr_failure_drops_segment():
    sink = RecordingSink()
    processor, completions = _processor(StubTranscriber(error=RuntimeError("model gone")), sinks=[sink])
    result = processor.process(_segment(3.0))
    assert result.outcome is SegmentOutcome.ASR_FAILED
    assert sink.received == []
    assert completions == [1]


def test_few_words_are_dropped_before_cleanup():
    cleaner = StubCleaner("Um, yeah.")
    sink = RecordingSink()
    processor, completions = _processor(StubTranscriber("um yeah"), cleaner=cleaner, sinks=[sink])
    result = processor.process(_segment(3.0))
    assert result.outcome is SegmentOutcome.TOO_FEW_WORDS
    assert result.raw_text == "um yeah"
    assert cleaner.calls == []
    assert sink.received == []
    assert completions == [1]


def test_blank_transcript_is_dropped():
    sink = RecordingSink()
    processor, _ = _processor(StubTranscriber("   "), sinks=[sink], min_word_count=0)
    assert processor.process(_segment(3.0)).outcome is SegmentOutcome.TOO_FEW_WORDS
    assert sink.received == []


def test_accepted_cleanup_is_dispatched_to_every_sink():
    transcriber = StubTranscriber("hello there how are you")
    cleaner = StubCleaner("Hello there, how are you?")
    first, second = RecordingSink("first"), RecordingSink("second")
    processor, completions = _processor(
        transcriber, cleaner=cleaner, context_provider=StubContext(), sinks=[first, second]
    )

    result = processor.process(_segment(3.0))

    assert result.outcome is SegmentOutcome.DISPATCHED
    assert transcriber.calls == [3 * SAMPLE_RATE]
    assert cleaner.calls == ["hello there how are you"]
    assert first.received == ["Hello there, how are you?"]
    assert second.received == ["Hello there, how are you?"]
    assert result.context.app_name == "Editor"
    assert result.candidate.accepted
    assert completions == [1]


def test_cleanup_failure_falls_back_to_raw():
    sink = RecordingSink()
    processor, _ = _processor(
        StubTranscriber("hello there how are you"),
        cleaner=StubCleaner(error=RuntimeError("llm down")),
        sinks=[sink],
    )
    result = processor.process(_segment(3.0))
    assert result.outcome is SegmentOutcome.DISPATCHED
    assert sink.received == ["hello there how are you"]


def test_rejected_cleanup_emits_normalized_raw():
    sink = RecordingSink()
    processor, _ = _processor(
        StubTranscriber("send the report,then call maria"),
        cleaner=StubCleaner("Here is the corrected text: Send the report."),
        sinks=[sink],
    )
    before = _sample("murmur_cleanup_rejections_total")

    result = processor.process(_segment(3.0))

    assert result.outcome is SegmentOutcome.DISPATCHED
    assert not result.candidate.accepted
    assert sink.received == ["send the report, then call maria"]
    assert _sample("murmur_cleanup_rejections_total") == before + 1


def test_context_failure_does_not_stop_processing():
    context = StubContext(error=OSError("no display"))
    sink = RecordingSink()
    processor, _ = _processor(StubTranscriber("one two three four"), context_provider=context, sinks=[sink])
    result = processor.process(_segment(2.5))
    assert context.calls == 1
    assert result.outcome is SegmentOutcome.DISPATCHED
    assert result.context.app_name == ""
    assert sink.received == ["one two three four"]


def test_failing_sink_does_not_block_the_others():
    broken = RecordingSink("broken", error=OSError("no clipboard"))
    healthy = RecordingSink("healthy")
    processor, completions = _processor(StubTranscriber("one two three four"), sinks=[broken, healthy])
    before = _sample("murmur_sink_errors_total", sink="broken")

    result = processor.process(_segment(3.0))

    assert result.outcome is SegmentOutcome.DISPATCHED
    assert healthy.received == ["one two three four"]
    assert _sample("murmur_sink_errors_total", sink="broken") == before + 1
    assert completions == [1]


def test_misbehaving_transcriber_still_completes():
    processor, completions = _processor(StubTranscriber(text=42))
    result = processor.process(_segment(3.0))
    assert result.outcome is SegmentOutcome.FAILED
    assert completions == [1]


def test_completion_callback_errors_are_contained():
    def bad_callback():
        raise RuntimeError("listener broke")

    processor = SegmentProcessor(StubTranscriber("x"), on_complete=bad_callback)
    assert processor.process(_segment(0.5)).outcome is SegmentOutcome.TOO_SHORT
