"""Game session, history, runner and run output."""
