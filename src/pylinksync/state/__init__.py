"""State layer.

The registry, the snapshot store and the explicit controller context
live here, together with the diff/merge policy that is the only code
allowed to combine a stored snapshot with an incoming one.
"""
