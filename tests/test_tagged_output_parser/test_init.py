"""Test module for tagged_output_parser package initialization."""


def test_package_import() -> None:
    """Test that the package can be imported successfully."""
    # Arrange & Act
    import tagged_output_parser

    # Assert
    assert tagged_output_parser is not None


def test_package_has_version() -> None:
    """Test that the package has a version attribute."""
    import tagged_output_parser

    assert isinstance(tagged_output_parser.__version__, str)
    assert tagged_output_parser.__version__ == "0.1.0"


def test_package_has_author() -> None:
    """Test that the package has an author attribute."""
    import tagged_output_parser

    assert tagged_output_parser.__author__ == "Tagged Output Parser Team"


def test_package_all_exports() -> None:
    """Test that every name in __all__ is importable from the package."""
    import tagged_output_parser

    for name in tagged_output_parser.__all__:
        assert hasattr(tagged_output_parser, name), name

    for name in ("parse", "parse_attributes", "XMLStreamParser", "TagTreeParser"):
        assert name in tagged_output_parser.__all__
