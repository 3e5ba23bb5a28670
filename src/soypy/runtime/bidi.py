"""Bidirectional-text (i18n) primitives used by generated template code.

Executed into a sandbox context after ``arrays.py``; not imported.
Directionality is +1 for LTR, -1 for RTL and 0 for neutral text.
"""

import unicodedata as _unicodedata

LRM = "\u200e"
RLM = "\u200f"

_RTL_CLASSES = frozenset({"R", "AL"})
_LTR_CLASSES = frozenset({"L"})


def bidi_text_dir(text):
    """Directionality of the first strongly-directional character."""
    for ch in str(text):
        kind = _unicodedata.bidirectional(ch)
        if kind in _RTL_CLASSES:
            return -1
        if kind in _LTR_CLASSES:
            return 1
    return 0


def bidi_dir_attr(global_dir, text):
    """``dir="..."`` attribute when ``text`` runs against ``global_dir``."""
    text_dir = bidi_text_dir(text)
    if text_dir and text_dir != global_dir:
        return 'dir="rtl"' if text_dir < 0 else 'dir="ltr"'
    return ""


def bidi_mark(global_dir):
    return RLM if global_dir < 0 else LRM


def bidi_mark_after(global_dir, text):
    """Mark to append so ``text`` does not disturb the surrounding direction."""
    text_dir = bidi_text_dir(text)
    if text_dir and text_dir != global_dir:
        return bidi_mark(global_dir)
    return ""


def bidi_start_edge(global_dir):
    return "right" if global_dir < 0 else "left"


def bidi_end_edge(global_dir):
    return "left" if global_dir < 0 else "right"
