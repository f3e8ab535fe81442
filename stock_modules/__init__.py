"""
Stock modules -- collaborators built on top of the stock kernel.

Modules import from ``stock_kernel`` and ``stock_engines``; the kernel never
imports a module.
"""
