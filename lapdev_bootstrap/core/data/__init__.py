"""
Static defaults shipped with the bootstrapper.

Usage::

    from lapdev_bootstrap.core.data import defaults

    defaults.WS_CONFIG.render()
"""
