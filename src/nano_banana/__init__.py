"""
Nano Banana - 基于 Gemini 的图片变体生成服务
"""
__version__ = "0.1.0"
