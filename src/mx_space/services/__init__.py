# src/mx_space/services/__init__.py
"""Business logic services for the mx-space application.

Import services from their modules; the repositories depend on
``mx_space.services.pager``, so this package stays free of eager imports.
"""
