"""plancompose: production-plan compiler.

Turn a semi-structured production plan (global directives plus numbered
scene blocks) into a render manifest: timed scenes, layered effects,
an ordered job graph and a validation report. Platform rules come from
a versioned YAML policy table.
"""

__version__ = "0.1.0"
