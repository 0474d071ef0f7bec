from .html import highlight_html
from .tokenizer import Asn1Token, Asn1TokenType, tokenize_asn1

__all__ = ["Asn1Token", "Asn1TokenType", "highlight_html", "tokenize_asn1"]
