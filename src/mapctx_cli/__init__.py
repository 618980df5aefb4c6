"""mapctx command line interface."""
