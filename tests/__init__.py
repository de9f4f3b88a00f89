"""
makeit test suite
=================

Test Modules
------------
- test_lexer.py: Tests for tokenization of ``{{ ... }}`` blocks
- test_parser.py: Tests for text scanning and expression parsing
- test_ast.py: Tests for values and expression evaluation
- test_models.py: Tests for Pydantic metadata and configuration models
- test_template.py: Tests for the create/load/remove/list operations
- test_hooks.py: Tests for pre/post hook execution
- test_cli.py: Tests for the command-line interface

Running Tests
-------------
    # Run all tests
    pytest

    # Skip tests that spawn real processes
    pytest -m "not integration"

    # Run specific module
    pytest tests/test_parser.py

    # Run specific test class
    pytest tests/test_parser.py::TestNullCheck
"""
