"""Theme colors and color utilities for the UI."""


class GameColors:
    """Dark theme palette for the level screen."""

    BG_MAIN = "#1e1e2e"
    GAME_BG = "#2c3e50"
    PANEL_BG = "#2d3436"

    TEXT_PRIMARY = "#ffffff"
    TEXT_SECONDARY = "#ecf0f1"
    TEXT_CODE = "#dfe6e9"
    TEXT_OUTPUT = "#8fbcbb"
    TEXT_MUTED = "#95a5a6"

    RUN = "#2ecc71"
    RESET = "#e74c3c"
    HELP = "#3498db"

    GOAL = "#27ae60"
    OBSTACLE = "#7f8c8d"
    TARGET = "#e74c3c"
    TARGET_HIT = "#636e72"
    ENEMY = "#8b0000"
    CHARACTER = "#f1c40f"
    PROJECTILE = "#ff7675"


def blend_hex(a: str, b: str, t: float) -> str:
    """Blend two #RRGGBB colors. t=0 -> a, t=1 -> b."""
    a = a.strip()
    b = b.strip()
    if not (a.startswith("#") and b.startswith("#") and len(a) == 7 and len(b) == 7):
        return a
    try:
        ar, ag, ab = int(a[1:3], 16), int(a[3:5], 16), int(a[5:7], 16)
        br, bg, bb = int(b[1:3], 16), int(b[3:5], 16), int(b[5:7], 16)
    except ValueError:
        return a
    t = max(0.0, min(1.0, float(t)))
    r = int(ar + (br - ar) * t)
    g = int(ag + (bg - ag) * t)
    bl = int(ab + (bb - ab) * t)
    return f"#{r:02X}{g:02X}{bl:02X}"
