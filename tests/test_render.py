import io
import os

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import numpy as np
import pygame
import pytest
import soundfile as sf
from PIL import Image

import main as cli
from application.dto.render_dto import AnimationResultDTO, FrameDTO, RenderSettingsDTO
from epicycles.decoder import MonoSignal
from epicycles.engine import to_canvas_point
from epicycles.errors import ResourceUnavailableError
from epicycles.printer import OutputPrinter
from infrastructure.render import DirectoryFrameWriter, PygameFrameSink
from infrastructure.render.pygame_frame_sink import (
    CURSOR_COLOR,
    HIGHLIGHT_COLOR,
    STATUS_BAR_HEIGHT,
)

# Test Constants
SAMPLE_RATE: int = 44100
WIDTH: int = 320
HEIGHT: int = 240


# Helpers


def make_frame(highlight: complex = 0.25 + 0.1j, raw: bool = False) -> FrameDTO:
    chain: np.ndarray = np.array([0j, 0.1 + 0j, 0.2 + 0.05j, highlight])
    return FrameDTO(
        frame_index=0,
        simulated_time=0.0,
        chain=chain,
        positive_count=2,
        highlight=highlight,
        time_label="time = 0.000s",
        raw_vectors=np.array([0.1 + 0j, 0.1 + 0.05j]) if raw else None,
    )


def make_sink(**overrides) -> PygameFrameSink:
    settings = RenderSettingsDTO(width=WIDTH, height=HEIGHT, headless=True, font_size=24)
    for key, value in overrides.items():
        setattr(settings, key, value)
    signal = MonoSignal(samples=np.sin(np.linspace(0, 20, 4410)))
    return PygameFrameSink(settings, signal=signal)


def make_test_wav(path: str, channels: int = 2, num_frames: int = 441) -> None:
    t: np.ndarray = np.arange(num_frames) / SAMPLE_RATE
    mono: np.ndarray = (np.sin(2 * np.pi * 441 * t) * 16000).astype(np.int16)
    data: np.ndarray = np.column_stack([mono] * channels) if channels > 1 else mono
    sf.write(path, data, SAMPLE_RATE, subtype="PCM_16")


class TestPygameFrameSink:
    """Tests for the off-screen pygame sink."""

    def test_export_returns_png_of_canvas_size(self) -> None:
        sink = make_sink()
        sink.present(make_frame())
        data: bytes = sink.export_frame(0)
        sink.close()

        assert data.startswith(b"\x89PNG")
        img = Image.open(io.BytesIO(data))
        assert img.size == (WIDTH, HEIGHT)
        assert img.mode == "RGB"

    def test_endpoint_is_highlighted(self) -> None:
        sink = make_sink()
        frame = make_frame(highlight=-0.3 - 0.2j)
        sink.present(frame)
        x, y = to_canvas_point(frame.highlight, WIDTH, HEIGHT)
        assert tuple(sink.surface.get_at((x, y)))[:3] == HIGHLIGHT_COLOR
        sink.close()

    def test_background_is_black_away_from_drawing(self) -> None:
        sink = make_sink()
        sink.present(make_frame())
        assert tuple(sink.surface.get_at((WIDTH - 1, 0)))[:3] == (0, 0, 0)
        sink.close()

    def test_waveform_cursor_drawn_at_playback_position(self) -> None:
        sink = make_sink(draw_waveform=True)
        sink.present(make_frame())
        top: int = HEIGHT - STATUS_BAR_HEIGHT
        assert tuple(sink.surface.get_at((1, top + 10)))[:3] == CURSOR_COLOR
        sink.close()

    def test_no_status_bar_without_waveform_flag(self) -> None:
        sink = make_sink()
        sink.present(make_frame())
        top: int = HEIGHT - STATUS_BAR_HEIGHT
        assert tuple(sink.surface.get_at((1, top + 10)))[:3] == (0, 0, 0)
        sink.close()

    def test_raw_vectors_frame_renders(self) -> None:
        sink = make_sink(raw_vectors=True)
        sink.present(make_frame(raw=True))
        assert sink.export_frame(0).startswith(b"\x89PNG")
        sink.close()

    def test_missing_font_is_resource_error(self) -> None:
        with pytest.raises(ResourceUnavailableError, match="font"):
            make_sink(font_path="/nonexistent/DejaVuSans-Bold.ttf")

    def test_font_failure_releases_window_display(self) -> None:
        with pytest.raises(ResourceUnavailableError, match="font"):
            make_sink(headless=False, font_path="/nonexistent/DejaVuSans-Bold.ttf")
        assert pygame.display.get_init() is False


class TestDirectoryFrameWriter:
    """Tests for numbered still export."""

    def test_creates_directory_on_demand(self, tmp_path) -> None:
        out_dir: str = os.path.join(str(tmp_path), "a", "b")
        writer = DirectoryFrameWriter(out_dir)
        path: str = writer.write(7, b"png-bytes")

        assert path == os.path.join(out_dir, "000007.png")
        with open(path, "rb") as f:
            assert f.read() == b"png-bytes"

    def test_existing_directory_reused(self, tmp_path) -> None:
        DirectoryFrameWriter(str(tmp_path)).write(0, b"x")
        DirectoryFrameWriter(str(tmp_path)).write(1, b"y")
        assert sorted(os.listdir(str(tmp_path))) == ["000000.png", "000001.png"]

    def test_file_in_the_way_is_resource_error(self, tmp_path) -> None:
        blocker: str = os.path.join(str(tmp_path), "frames")
        with open(blocker, "w") as f:
            f.write("not a directory")
        with pytest.raises(ResourceUnavailableError, match="export directory"):
            DirectoryFrameWriter(blocker)


class TestCli:
    """Tests for argument handling and exit behaviour."""

    @pytest.fixture(autouse=True)
    def _no_signal_handlers(self, monkeypatch) -> None:
        monkeypatch.setattr(cli, "install_interrupt_handler", lambda token: None)

    def test_defaults_match_documented_options(self) -> None:
        args = cli.build_parser().parse_args(["clip.wav"])
        settings = cli.settings_from_args(args)
        assert settings.harmonics == 1000
        assert settings.scale == 2.0
        assert settings.speed == 0.02
        assert settings.draw_waveform is False
        assert settings.raw_vectors is False
        assert settings.export_dir is None
        assert settings.export_mode is False

    def test_flags_map_onto_settings(self) -> None:
        args = cli.build_parser().parse_args(
            ["clip.wav", "-w", "-r", "-n", "50", "-z", "4", "-s", "0.1", "-e", "out"]
        )
        settings = cli.settings_from_args(args)
        assert settings.draw_waveform is True
        assert settings.raw_vectors is True
        assert settings.harmonics == 50
        assert settings.scale == 4.0
        assert settings.speed == 0.1
        assert settings.export_dir == "out"

    def test_missing_input_exits_nonzero(self, capsys) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli.main(["missing.wav", "--no-color"])
        assert excinfo.value.code == 1
        assert "Input file not found" in capsys.readouterr().err

    def test_mono_input_exits_nonzero(self, tmp_path, capsys) -> None:
        in_path: str = os.path.join(str(tmp_path), "mono.wav")
        make_test_wav(in_path, channels=1)
        with pytest.raises(SystemExit) as excinfo:
            cli.main([in_path, "--no-color", "--headless"])
        assert excinfo.value.code == 1
        assert "2-channel" in capsys.readouterr().err

    def test_headless_export_writes_frames(self, tmp_path, capsys) -> None:
        in_path: str = os.path.join(str(tmp_path), "clip.wav")
        out_dir: str = os.path.join(str(tmp_path), "frames")
        make_test_wav(in_path)

        cli.main([
            in_path, "--export-dir", out_dir, "--headless", "--no-color",
            "--width", "160", "--height", "120", "--harmonics", "20", "--speed", "0.1",
        ])

        # 0.01 s at 0.1x with 16 ms frames: floor(6.25) + 1
        written: list[str] = sorted(os.listdir(out_dir))
        assert written[0] == "000000.png"
        assert len(written) == 7
        assert "Frames" in capsys.readouterr().out

    def test_verbose_prints_pipeline_steps(self, tmp_path, capsys) -> None:
        in_path: str = os.path.join(str(tmp_path), "clip.wav")
        out_dir: str = os.path.join(str(tmp_path), "frames")
        make_test_wav(in_path)

        cli.main([
            in_path, "-e", out_dir, "--headless", "--no-color", "-v",
            "--width", "160", "--height", "120", "--harmonics", "5", "--speed", "1",
        ])

        out: str = capsys.readouterr().out
        assert "[1/4] Decoding audio file" in out
        assert "[4/4] Rendering frames" in out

    def test_steps_hidden_without_verbose(self, tmp_path, capsys) -> None:
        in_path: str = os.path.join(str(tmp_path), "clip.wav")
        make_test_wav(in_path)

        cli.main([
            in_path, "-e", os.path.join(str(tmp_path), "frames"), "--headless", "--no-color",
            "--width", "160", "--height", "120", "--harmonics", "5", "--speed", "1",
        ])

        assert "Decoding audio file" not in capsys.readouterr().out


class TestOutputPrinter:
    """Tests for terminal output formatting."""

    def test_success_prints_details(self, capsys) -> None:
        OutputPrinter(no_color=True).success("clip.wav", details={"Frames": "32"})
        out: str = capsys.readouterr().out
        assert "clip.wav" in out
        assert "Frames    : 32" in out

    def test_error_goes_to_stderr_even_when_quiet(self, capsys) -> None:
        OutputPrinter(quiet=True, no_color=True).error("Broken.", hint="Fix it.")
        captured = capsys.readouterr()
        assert "Broken." in captured.err
        assert "Fix it." in captured.err
        assert captured.out == ""

    def test_quiet_suppresses_warning_and_info(self, capsys) -> None:
        printer = OutputPrinter(quiet=True)
        printer.warning("Cancelled.")
        printer.info("Working.")
        assert capsys.readouterr().out == ""

    def test_no_color_env_variable(self, monkeypatch) -> None:
        monkeypatch.setenv("NO_COLOR", "1")
        assert OutputPrinter().no_color is True

    def test_color_wraps_in_ansi(self) -> None:
        assert OutputPrinter(no_color=False)._colorize("hi", "32") == "\033[32mhi\033[0m"

    def test_step_line_is_one_based(self, capsys) -> None:
        OutputPrinter(no_color=True).step(1, 4, "Computing spectrum")
        assert "[2/4] Computing spectrum" in capsys.readouterr().out

    def test_summary_reports_frames_rate_and_output(self, capsys) -> None:
        result = AnimationResultDTO(
            frames_rendered=30, export_dir="frames", last_frame_path="frames/000029.png"
        )
        OutputPrinter(no_color=True).render_summary("clip.wav", result, elapsed=2.0)
        out: str = capsys.readouterr().out
        assert "Frames    : 30" in out
        assert "Rate      : 15.0 frames/s" in out
        assert "Output    : frames" in out
        assert "Last      : frames/000029.png" in out

    def test_summary_without_export_omits_output(self, capsys) -> None:
        OutputPrinter(no_color=True).render_summary(
            "clip.wav", AnimationResultDTO(frames_rendered=5), elapsed=0.5
        )
        out: str = capsys.readouterr().out
        assert "Frames    : 5" in out
        assert "Output" not in out

    def test_cancelled_summary_mentions_kept_frames(self, capsys) -> None:
        result = AnimationResultDTO(frames_rendered=3, cancelled=True, export_dir="frames")
        OutputPrinter(no_color=True).render_summary("clip.wav", result, elapsed=1.0)
        out: str = capsys.readouterr().out
        assert "cancelled after 3 frame(s)" in out
        assert "kept in 'frames'" in out

    def test_cancelled_live_summary_says_nothing_saved(self, capsys) -> None:
        result = AnimationResultDTO(frames_rendered=3, cancelled=True)
        OutputPrinter(no_color=True).render_summary("clip.wav", result, elapsed=1.0)
        assert "Nothing was saved." in capsys.readouterr().out
