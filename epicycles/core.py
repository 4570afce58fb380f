import logging
from dataclasses import replace
from typing import Callable, Optional

from application.dto.render_dto import AnimationResultDTO, FrameDTO, RenderSettingsDTO
from application.ports.frame_sink_port import IFrameSink, IFrameWriter
from epicycles.clock import AnimationClock, CancellationToken
from epicycles.decoder import MonoSignal, decode
from epicycles.engine import positions
from epicycles.spectrum import Spectrum, transform
from epicycles.utils import (
    format_time_label,
    validate_input_file,
    validate_param_range,
)

logger = logging.getLogger("epicycles.core")


def validate_settings(settings: RenderSettingsDTO) -> None:
    """Range-check every numeric option before any work starts."""
    validate_param_range(settings.harmonics, "harmonics", 1, 1_000_000)
    validate_param_range(settings.scale, "scale", 0.001, 1000.0)
    validate_param_range(settings.speed, "speed", 0.0001, 100.0)
    validate_param_range(settings.fps, "fps", 1.0, 1000.0)
    validate_param_range(settings.width, "width", 16, 16384)
    validate_param_range(settings.height, "height", 16, 16384)
    validate_param_range(settings.font_size, "font_size", 1, 1024)


def clamp_harmonics(requested: int, spectrum: Spectrum) -> int:
    """Fit the requested harmonic count to the spectrum, warning when it shrinks."""
    limit: int = spectrum.max_harmonics()
    if requested > limit:
        logger.warning(
            "requested %d harmonics but a %d-sample clip only has %d; using %d",
            requested, spectrum.length, limit, limit,
        )
        return limit
    return requested


def animate(
    spectrum: Spectrum,
    fundamental: float,
    clock: AnimationClock,
    sink: IFrameSink,
    settings: RenderSettingsDTO,
    frame_writer: Optional[IFrameWriter] = None,
    on_frame: Optional[Callable[[int, float], None]] = None,
) -> AnimationResultDTO:
    """
    Render frames until the clip ends or the token is cancelled.

    Export mode (frame_writer given) never sleeps: every frame is encoded
    and written straight away. Live mode paces frames with clock.wait().

    Args:
        spectrum:     DFT of the mono signal.
        fundamental:  1 / clip duration.
        clock:        Frame timing and cancellation.
        sink:         Where frames are drawn.
        settings:     Harmonic count, scale and overlay toggles.
        frame_writer: Destination for exported stills, or None for live mode.
        on_frame:     Optional callback (frame_index, simulated_time).
    """
    result = AnimationResultDTO(
        export_dir=settings.export_dir if frame_writer is not None else None
    )

    for frame_index, simulated_time_s in clock.frames():
        geometry = positions(
            spectrum,
            fundamental,
            simulated_time_s,
            settings.harmonics,
            settings.scale,
            include_raw_vectors=settings.raw_vectors,
        )
        sink.present(
            FrameDTO(
                frame_index=frame_index,
                simulated_time=simulated_time_s,
                chain=geometry.chain,
                positive_count=geometry.positive_count,
                highlight=geometry.endpoint,
                time_label=format_time_label(simulated_time_s),
                raw_vectors=geometry.raw_vectors,
            )
        )

        if frame_writer is not None:
            result.last_frame_path = frame_writer.write(
                frame_index, sink.export_frame(frame_index)
            )
        else:
            clock.wait()

        result.frames_rendered += 1
        if on_frame:
            on_frame(frame_index, simulated_time_s)

    result.cancelled = clock.token.cancelled
    logger.info(
        "rendered %d frame(s)%s", result.frames_rendered,
        " (cancelled)" if result.cancelled else "",
    )
    return result


def render_epicycles(
    input_path: str,
    settings: Optional[RenderSettingsDTO] = None,
    sink: Optional[IFrameSink] = None,
    frame_writer: Optional[IFrameWriter] = None,
    token: Optional[CancellationToken] = None,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
    frame_callback: Optional[Callable[[int, int], None]] = None,
) -> AnimationResultDTO:
    """
    Full pipeline: decode → transform → animate.

    Args:
        input_path:  Stereo 44.1 kHz integer PCM WAV file.
        settings:    Render options (defaults when omitted).
        sink:        Frame sink; a pygame window/surface when omitted.
        frame_writer: Still writer; a DirectoryFrameWriter on
                     settings.export_dir when omitted and export is on.
        token:       Cancellation token shared with the signal handler.
        progress_callback: Optional callback (step_idx, total_steps, step_name).
        frame_callback: Optional callback (frames_done, expected_frames).
    """
    settings = settings if settings is not None else RenderSettingsDTO()
    token = token if token is not None else CancellationToken()

    validate_input_file(input_path)
    validate_settings(settings)

    steps = [
        "Decoding audio file",
        "Computing spectrum",
        "Opening drawing surface",
        "Rendering frames",
    ]
    total_steps = len(steps)

    def _report(step_idx: int) -> None:
        if progress_callback:
            progress_callback(step_idx, total_steps, steps[step_idx])

    # [1] Decode
    _report(0)
    signal: MonoSignal = decode(input_path)

    # [2] Transform
    _report(1)
    spectrum: Spectrum = transform(signal.samples)
    settings = replace(settings, harmonics=clamp_harmonics(settings.harmonics, spectrum))
    logger.info(
        "spectrum: %d bins, fundamental %.4f Hz, %d harmonics",
        spectrum.length, signal.fundamental, settings.harmonics,
    )

    # [3] Surface and writer
    _report(2)
    if frame_writer is None and settings.export_mode:
        from infrastructure.render import DirectoryFrameWriter
        frame_writer = DirectoryFrameWriter(settings.export_dir)
    own_sink: bool = sink is None
    if sink is None:
        from infrastructure.render import PygameFrameSink
        sink = PygameFrameSink(settings, signal=signal, on_quit=token.cancel)

    clock = AnimationClock(
        signal.duration,
        target_fps=settings.fps,
        speed_factor=settings.speed,
        token=token,
    )
    expected: int = clock.expected_frames()

    def _on_frame(frame_index: int, simulated_time_s: float) -> None:
        if frame_callback:
            frame_callback(frame_index + 1, expected)

    # [4] Render
    _report(3)
    try:
        return animate(
            spectrum,
            signal.fundamental,
            clock,
            sink,
            settings,
            frame_writer=frame_writer,
            on_frame=_on_frame,
        )
    finally:
        if own_sink:
            sink.close()
