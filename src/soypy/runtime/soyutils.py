"""The ``soy`` runtime object that generated template code calls into.

Executed into a sandbox context last, after ``base.py``, ``strings.py``,
``html.py``, ``arrays.py`` and ``bidi.py``; not imported. It refers to names
those files defined in the same context.

Delegate templates (``{deltemplate}``) register into the two registries
below. Re-executing a module that registers delegates would hit the
duplicate-priority check, so the loader clears both registries before every
incremental load instead of re-running this file.
"""

_DELEGATE_REGISTRY_PRIORITIES = {}
_DELEGATE_REGISTRY_FUNCTIONS = {}


def _delegate_key(del_template_id, variant):
    return f"key_{del_template_id}:{variant}"


def get_del_template_id(name):
    return name


def register_delegate_fn(del_template_id, variant, priority, fn):
    """Register ``fn`` unless an equal-or-higher priority delegate exists."""
    key = _delegate_key(del_template_id, variant)
    current = _DELEGATE_REGISTRY_PRIORITIES.get(key)
    if current is None or priority > current:
        _DELEGATE_REGISTRY_PRIORITIES[key] = priority
        _DELEGATE_REGISTRY_FUNCTIONS[key] = fn
    elif priority == current:
        raise ValueError(
            "Encountered two active delegates with the same priority "
            f'("{del_template_id}:{variant}")'
        )


def _empty_template_fn(opt_data=None, opt_ignored=None, opt_ij_data=None):
    return ""


def get_delegate_fn(del_template_id, variant, allow_empty_default=False):
    """Find the delegate for ``variant``, falling back to the default variant."""
    variant = "" if variant is None else str(variant)
    fn = _DELEGATE_REGISTRY_FUNCTIONS.get(_delegate_key(del_template_id, variant))
    if fn is None and variant:
        fn = _DELEGATE_REGISTRY_FUNCTIONS.get(_delegate_key(del_template_id, ""))
    if fn is not None:
        return fn
    if allow_empty_default:
        return _empty_template_fn
    raise LookupError(
        f'Found no active impl for delegate call to "{del_template_id}:{variant}" '
        "(and not allow_empty_default=True)"
    )


soy = Namespace(
    # namespaces
    provide=provide,
    get_object_by_name=get_object_by_name,
    # strings
    str_contains=str_contains,
    str_index_of=str_index_of,
    str_sub=str_sub,
    collapse_whitespace=collapse_whitespace,
    change_newline_to_br=change_newline_to_br,
    truncate=truncate,
    insert_word_breaks=insert_word_breaks,
    # html
    ContentKind=ContentKind,
    SanitizedContent=SanitizedContent,
    escape_html=escape_html,
    unescape_html=unescape_html,
    escape_uri=escape_uri,
    filter_normalize_uri=filter_normalize_uri,
    ordain_content=ordain_content,
    # arrays
    augment_map=augment_map,
    map_keys=map_keys,
    check_not_null=check_not_null,
    list_contains=list_contains,
    round_number=round_number,
    # i18n
    bidi_text_dir=bidi_text_dir,
    bidi_dir_attr=bidi_dir_attr,
    bidi_mark=bidi_mark,
    bidi_mark_after=bidi_mark_after,
    bidi_start_edge=bidi_start_edge,
    bidi_end_edge=bidi_end_edge,
    # delegates
    get_del_template_id=get_del_template_id,
    register_delegate_fn=register_delegate_fn,
    get_delegate_fn=get_delegate_fn,
)
