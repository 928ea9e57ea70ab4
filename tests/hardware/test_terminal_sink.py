import io

import pytest

from hardware.matrix.terminal_sink import (
    HIDE_CURSOR,
    LEAVE_ALT_SCREEN,
    SHADES,
    TITLE,
    TerminalSink,
    shade_for,
)
from models.errors import RenderError
from models.frame import FrameBuffer, TickStatus


@pytest.fixture
def stream():
    return io.StringIO()


def test_shade_for_extremes():
    assert shade_for(0) == " "
    assert shade_for(1) == SHADES[1]
    assert shade_for(255) == "█"


def test_shades_are_monotonic():
    indexes = [SHADES.index(shade_for(v)) for v in range(256)]

    assert indexes == sorted(indexes)


def test_render_text_layout(stream):
    sink = TerminalSink(stream, use_ansi=False)
    sink.update_status(TickStatus(frame=7, day_score=200, night_score=106, fps_target=32, fps_actual=31.5))
    frame = FrameBuffer.from_rows([[255, 0, 255], [0, 0, 0]])

    lines = sink.render_text([frame]).splitlines()

    assert lines[0] == TITLE
    assert lines[1] == "Day: 200 | Night: 106 | FPS: 31.5/32 | Frame: 7"
    assert lines[2] == ""
    assert lines[3] == "█ █"
    assert lines[4] == "   "


def test_dual_panels_are_separated(stream):
    sink = TerminalSink(stream, use_ansi=False)
    left = FrameBuffer.from_rows([[255, 255]])
    right = FrameBuffer.from_rows([[0, 255]])

    lines = sink.render_text([left, right]).splitlines()

    assert lines[3] == "██│ █"


def test_send_writes_frame(stream):
    sink = TerminalSink(stream, use_ansi=False)
    sink.open()

    sink.send([FrameBuffer.filled(2, 2, 255)])

    assert "██" in stream.getvalue()
    assert sink.frames_drawn == 1


def test_send_rejects_bad_input(stream):
    sink = TerminalSink(stream, use_ansi=False)

    with pytest.raises(RenderError):
        sink.send([])
    with pytest.raises(RenderError):
        sink.send([FrameBuffer.filled(2, 2), FrameBuffer.filled(2, 3)])


def test_open_and_close_restore_terminal(stream):
    sink = TerminalSink(stream)

    sink.open()
    sink.close()
    sink.close()

    output = stream.getvalue()
    assert output.startswith("\033[?1049h" + HIDE_CURSOR)
    assert output.endswith(LEAVE_ALT_SCREEN)
    assert output.count(LEAVE_ALT_SCREEN) == 1


def test_max_fps():
    assert TerminalSink(io.StringIO()).max_fps == 120
