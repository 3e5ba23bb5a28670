"""String primitives used by generated template code.

Executed into a sandbox context after ``base.py``; not imported.
"""

import re

_WHITESPACE_RE = re.compile(r"\s+")
_NEWLINE_RE = re.compile(r"\r\n|\r|\n")


def str_contains(value, needle):
    return str(needle) in str(value)


def str_index_of(value, needle):
    return str(value).find(str(needle))


def str_sub(value, start, end=None):
    return str(value)[start:end]


def collapse_whitespace(value):
    return _WHITESPACE_RE.sub(" ", str(value)).strip()


def change_newline_to_br(value):
    return _NEWLINE_RE.sub("<br>", str(value))


def truncate(value, max_len, do_add_ellipsis=True):
    text = str(value)
    if len(text) <= max_len:
        return text
    if do_add_ellipsis and max_len > 3:
        return text[: max_len - 3] + "..."
    return text[:max_len]


def insert_word_breaks(value, max_chars_between_word_breaks):
    """Insert ``<wbr>`` into runs of non-space text longer than the limit."""
    out = []
    run = 0
    in_tag = False
    for ch in str(value):
        if ch == "<":
            in_tag = True
        elif ch == ">":
            in_tag = False
        if in_tag or ch.isspace():
            run = 0
        else:
            run += 1
            if run > max_chars_between_word_breaks:
                out.append("<wbr>")
                run = 1
        out.append(ch)
    return "".join(out)
