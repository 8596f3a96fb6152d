"""Task processing: snapshot loading, prompt building and the processor state machine."""
