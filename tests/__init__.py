"""
Test Suite for Swagify
======================

Test Structure:
    - test_extractor.py / test_reconciler.py / test_regenerator.py: pipeline stages
    - test_pipeline.py: end-to-end properties of one pipeline pass
    - test_tokenizer.py / test_expressions.py / test_controller.py / test_rewriter.py: C# syntax service
    - test_refactoring.py: code actions and document sync
    - test_config.py / test_cli.py: configuration and command line
"""

__version__ = "1.0.0"
