"""Namespace primitives for generated template code.

Executed into a sandbox context before any generated module; not imported.
Everything defined here becomes a global of that context, so ``globals()``
below is the context's namespace, not this file's module.
"""


class Namespace:
    """Attribute bag standing in for a dotted template namespace."""

    def __init__(self, **members):
        self.__dict__.update(members)

    def __repr__(self):
        return f"Namespace({', '.join(sorted(self.__dict__))})"


def provide(name, declare_top_level=True):
    """Declare the dotted namespace ``name`` and return its innermost object.

    With ``declare_top_level=False`` the first segment must already exist in
    the context (defined by a context file); only the nested parts are
    created.
    """
    scope = globals()
    head, *rest = name.split(".")
    if head not in scope:
        if not declare_top_level:
            raise NameError(f"Top-level namespace '{head}' is not declared")
        scope[head] = Namespace()
    obj = scope[head]
    for part in rest:
        if not hasattr(obj, part):
            setattr(obj, part, Namespace())
        obj = getattr(obj, part)
    return obj


def get_object_by_name(name):
    """Resolve a dotted name against the context, or return None."""
    head, *rest = name.split(".")
    obj = globals().get(head)
    for part in rest:
        if obj is None:
            return None
        obj = getattr(obj, part, None)
    return obj
