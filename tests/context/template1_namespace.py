# Declares the top-level namespace for modules compiled with
# should_declare_top_level_namespaces=False.
template1 = Namespace()
