"""Car-rental booking wizard core: insurance engine, booking state machine and orchestrator."""
