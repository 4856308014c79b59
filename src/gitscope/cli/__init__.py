"""gitscope command line interface."""
