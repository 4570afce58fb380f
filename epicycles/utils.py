import os

SUPPORTED_INPUT_FORMATS: set[str] = {".wav"}

# Default render parameters (CLI defaults come from here)
DEFAULT_PARAMS: dict = {
    "harmonics": 1000,
    "scale": 2.0,
    "speed": 0.02,
    "fps": 60.0,
    "width": 1280,
    "height": 720,
    "font_size": 128,
    "draw_waveform": False,
    "raw_vectors": False,
}

FRAME_EXTENSION: str = ".png"


def validate_input_file(path: str) -> None:
    """Raise FileNotFoundError / ValueError if the input path is invalid."""
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"Input file not found: '{path}'.\n" f"    → Check the path and try again."
        )
    if not os.path.isfile(path):
        raise ValueError(
            f"Input path is not a file: '{path}'.\n"
            f"    → Provide a path to a WAV file, not a directory."
        )

    ext: str = os.path.splitext(path)[1].lower()
    if ext not in SUPPORTED_INPUT_FORMATS:
        raise ValueError(
            f"Unsupported input format: '{ext}'.\n"
            f"    Supported: {', '.join(sorted(SUPPORTED_INPUT_FORMATS))}\n"
            f"    → Example: python main.py clip.wav"
        )


def validate_param_range(
    value: float, name: str, min_val: float, max_val: float
) -> None:
    """Raise ValueError if a numeric parameter is out of its valid range."""
    if not (min_val <= value <= max_val):
        raise ValueError(
            f"Parameter '{name}' must be between {min_val} and {max_val}. Got: {value}.\n"
            f"    → Adjust the value to be within the valid range."
        )


def get_frame_path(export_dir: str, frame_index: int) -> str:
    """
    Build the path of an exported still.

    Example: ('frames', 42)  →  frames/000042.png
    """
    return os.path.join(export_dir, f"{frame_index:06d}{FRAME_EXTENSION}")


def format_time_label(simulated_time_s: float) -> str:
    """Overlay text shown in the corner of every frame."""
    return f"time = {simulated_time_s:.3f}s"
