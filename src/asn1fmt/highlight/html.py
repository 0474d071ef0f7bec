from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader

from .tokenizer import Asn1TokenType, tokenize_asn1

# Token type -> CSS class suffix. Types not listed are emitted without a span.
CSS_CLASSES: Dict[Asn1TokenType, str] = {
    Asn1TokenType.COMMENT: "comment",
    Asn1TokenType.STRING: "string",
    Asn1TokenType.NUMBER: "number",
    Asn1TokenType.KEYWORD: "keyword",
    Asn1TokenType.OPERATOR: "operator",
    Asn1TokenType.TAG: "tag",
    Asn1TokenType.PUNCTUATION: "punctuation",
}


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        autoescape=True,
        keep_trailing_newline=True,
    )


def highlight_html(text: str, *, standalone: bool = False, title: str = "ASN.1") -> str:
    """Render *text* as an HTML ``<pre>`` block with one span per token.

    With ``standalone=True`` the block is wrapped in a complete HTML page
    that carries a default stylesheet.
    """
    env = _get_template_env()
    template = env.get_template("highlight.html.j2")

    tokens: List[Dict[str, str]] = []
    for tok in tokenize_asn1(text):
        if tok.type == Asn1TokenType.EOF:
            break
        tokens.append({"value": tok.value, "css": CSS_CLASSES.get(tok.type, "")})

    return template.render(tokens=tokens, standalone=standalone, title=title)
