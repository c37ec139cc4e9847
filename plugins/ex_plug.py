"""Example calc-jax plugin: ``call(ex_plug, x)`` evaluates to ``x``.

Copy it into the plugin directory (``$CALC_JAX_PLUGIN_DIR`` or
``~/.config/calc/plugins``) to make it callable.
"""

from calc_jax.errors import arity_error


def execute(args):
    if len(args) != 1:
        raise arity_error("ex_plug", 1, len(args))
    return args[0]
