"""Car RepAIr inspection backend: task-processing pipeline and HTTP surface."""
