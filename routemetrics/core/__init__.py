"""Core timing, routing, labelling and metrics composition."""
