"""
Package core.tokenization - Token estimation building blocks.

Modules:
- heuristic: Character/word based estimator + HeuristicConfig
- file_reader: Fingerprint, doc file, cat line range
- cache: FingerprintCache (thread-safe, khong eviction)
- registry: TokenizerRegistry (model -> tiktoken / HF tokenizer / heuristic)
"""
