# Subpackages are imported directly (edgeport.core.transform,
# edgeport.core.analysis, ...) so that using the transform engine does
# not pull in the conversion layer.
