"""
                GAB-EATS State Service

Local-first state layer for a multi-vendor food delivery platform: a
persisted master snapshot, an optional shared remote mirror reconciled by
last-writer-wins, and a FastAPI surface for the storefront and operator
console.

Author: Khalil_Bannouri
Version: 4.0.0
License: MIT
"""

__version__ = "4.0.0"
__author__ = "Khalil_Bannouri"
