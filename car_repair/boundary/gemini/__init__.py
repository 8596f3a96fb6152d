"""Google Gemini boundary: the image analysis adapter."""

from car_repair.boundary.gemini.vision_client import GeminiVisionClient, parse_analysis_text

__all__ = ["GeminiVisionClient", "parse_analysis_text"]
