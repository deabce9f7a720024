"""
Column-mapping and batched-import pipeline.

raw text -> tokenizer -> preview -> mapper -> (confirmed mapping) ->
validators -> importer
"""
