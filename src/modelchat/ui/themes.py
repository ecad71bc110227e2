"""Theme definitions for the TUI.

This module hides the color palette. To add a theme, define it here and
register it in the app.
"""

from textual.theme import Theme

MODELCHAT_DARK = Theme(
    name="modelchat-dark",
    primary="#7aa2f7",      # Blue - conversation
    secondary="#bb9af7",    # Purple - thread list
    accent="#e0af68",       # Amber - user messages, active thread
    foreground="#c0caf5",
    background="#16161e",
    success="#9ece6a",      # Green - assistant messages
    warning="#ff9e64",      # Orange - in-progress replies
    error="#f7768e",
    surface="#1f2335",
    panel="#1a1b26",
    dark=True,
    variables={
        "block-cursor-foreground": "#16161e",
        "block-cursor-background": "#7aa2f7",
        "block-cursor-text-style": "bold",
        "block-cursor-blurred-background": "#292e42",
        "input-selection-background": "#7aa2f7 30%",
        "border": "#3b4261",
        "border-blurred": "#292e42",
        "scrollbar": "#292e42",
        "scrollbar-hover": "#3b4261",
        "scrollbar-active": "#7aa2f7",
        "scrollbar-background": "#1a1b26",
        "footer-key-foreground": "#e0af68",
        "footer-background": "#16161e",
        "text-muted": "#565f89",
    },
)
