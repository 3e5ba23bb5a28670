"""List and map primitives used by generated template code.

Executed into a sandbox context after ``html.py``; not imported.
"""


def augment_map(base, additions):
    merged = dict(base or {})
    merged.update(additions or {})
    return merged


def map_keys(mapping):
    return list(mapping or {})


def check_not_null(value):
    if value is None:
        raise ValueError("unexpected null value")
    return value


def list_contains(values, item):
    return item in (values or ())


def round_number(value, digits=0):
    if digits <= 0:
        factor = 10 ** -digits
        return int(round(value / factor) * factor)
    return round(value, digits)
