"""
Application-wide constants.

Canvas geometry and colors, pen limits, and relay/provider defaults.
"""

# Logical canvas size; every input source is mapped into this space
CANVAS_WIDTH = 900
CANVAS_HEIGHT = 600

GRID_PITCH = 30
GRID_LINE_WIDTH = 1

BACKGROUND_COLOR = (0x0B, 0x0F, 0x19)  # #0b0f19
GRID_COLOR = (0x1B, 0x23, 0x36)  # #1b2336
INK_COLOR = (0xE6, 0xED, 0xF7)  # #e6edf7

PEN_WIDTH_MIN = 1
PEN_WIDTH_MAX = 20
PEN_WIDTH_DEFAULT = 4

# Providers understood by the relay -> (chat-completions URL, key env var, default model)
PROVIDERS = {
    "openai": {
        "url": "https://api.openai.com/v1/chat/completions",
        "key_env": "OPENAI_API_KEY",
        "default_model": "gpt-4o-mini",
    },
    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_env": "OPENROUTER_API_KEY",
        "default_model": "openai/gpt-4o-mini",
    },
}

DEFAULT_PROVIDER = "openai"
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 1000

DEFAULT_PROMPT = (
    "Interpret the problem in this image and solve it step by step. "
    "Use Markdown and LaTeX ($...$, $$...$$). "
    "Finish with an **Answer** section highlighting the final result."
)

DEFAULT_RELAY_URL = "http://localhost:3001"
DEFAULT_RELAY_PORT = 3001
DEFAULT_RELAY_TIMEOUT = 60.0

SETTINGS_KEY = "img-solve-settings"

# Equivalence checker
CHECK_TRIALS = 5
CHECK_TOLERANCE = 1e-6


def default_model_for(provider: str) -> str:
    """Return the default vision model for a provider (OpenAI's if unknown)."""
    info = PROVIDERS.get(provider, PROVIDERS[DEFAULT_PROVIDER])
    return info["default_model"]


def clamp_pen_width(width: float) -> int:
    """Clamp a pen width into the supported range."""
    return int(max(PEN_WIDTH_MIN, min(PEN_WIDTH_MAX, round(width))))
