"""
Shareable product page (Open-Graph / Twitter card meta tags plus a small
image slider). Every interpolated value is HTML-escaped.
"""

from __future__ import annotations

from html import escape
from typing import Any

APP_NAME = "Banco de Dados - Fitness"

_STYLE = """
* { margin: 0; padding: 0; box-sizing: border-box; }
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif; min-height: 100vh;
       background: #000; display: flex; align-items: center; justify-content: center; }
.lightbox { width: 100vw; min-height: 100vh; display: flex; flex-direction: column; align-items: center;
            justify-content: center; background: linear-gradient(135deg, #1a1a1a 0%, #000 100%); }
.slider { position: relative; width: 90vw; max-width: 700px; height: 70vh; margin-bottom: 20px;
          border-radius: 12px; overflow: hidden; background: rgba(0, 0, 0, 0.5); }
.slide { position: absolute; inset: 0; display: flex; align-items: center; justify-content: center;
         opacity: 0; transition: opacity 0.5s ease-in-out; }
.slide.active { opacity: 1; z-index: 10; }
.slide img { max-width: 100%; max-height: 100%; object-fit: contain; border-radius: 8px; }
.slide.empty { font-size: 80px; color: #39ff14; }
.nav { position: absolute; top: 50%; transform: translateY(-50%); z-index: 20; width: 50px; height: 50px;
       border: none; border-radius: 50%; background: rgba(57, 255, 20, 0.8); font-size: 24px; cursor: pointer; }
.nav.prev { left: 10px; }
.nav.next { right: 10px; }
.info { background: rgba(0, 0, 0, 0.9); padding: 24px; text-align: center; border-top: 2px solid #39ff14;
        width: 100%; max-width: 700px; }
.title { color: #39ff14; font-size: 22px; font-weight: 700; margin-bottom: 12px; word-break: break-word; }
.link { color: #39ff14; word-break: break-all; text-decoration: none; }
.btn { display: inline-block; margin: 12px 6px 0; padding: 12px 28px; border-radius: 8px; font-weight: 600;
       text-decoration: none; background: #39ff14; color: #000; }
@media (max-width: 768px) { .slider { height: 50vh; } .title { font-size: 18px; } }
"""

_SCRIPT = """
let current = 0;
const slides = document.querySelectorAll('.slide');
function show(i) {
  if (slides.length === 0) return;
  slides.forEach(s => s.classList.remove('active'));
  slides[i].classList.add('active');
}
function step(d) { current = (current + d + slides.length) % slides.length; show(current); }
document.addEventListener('keydown', e => {
  if (e.key === 'ArrowLeft') step(-1);
  if (e.key === 'ArrowRight') step(1);
});
if (slides.length > 1) setInterval(() => step(1), 4000);
"""


def _slides(images: list[str], title: str) -> str:
    if not images:
        return '<div class="slide active empty">&#128717;</div>'
    return "\n".join(
        f'<div class="slide{" active" if idx == 0 else ""}"><img src="{escape(img)}" alt="{escape(title)}"></div>'
        for idx, img in enumerate(images)
    )


def render_product_page(product: dict[str, Any], *, images: list[str], cover: str | None, site_url: str) -> str:
    title = str(product.get("titulo") or "")
    link = str(product.get("link_mercadolivre") or "")
    page_url = f"{site_url}/produto/{product.get('id')}"
    nav = ""
    if len(images) > 1:
        nav = (
            '<button class="nav prev" onclick="step(-1)">&#10094;</button>'
            '<button class="nav next" onclick="step(1)">&#10095;</button>'
        )
    t, c, a = escape(title), escape(cover or ""), escape(APP_NAME)
    return f"""<!DOCTYPE html>
<html lang="pt-BR">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{t} - {a}</title>
  <meta property="og:type" content="product">
  <meta property="og:title" content="{t}">
  <meta property="og:description" content="Confira este produto na nossa loja - {a}!">
  <meta property="og:image" content="{c}">
  <meta property="og:url" content="{escape(page_url)}">
  <meta property="og:site_name" content="{a}">
  <meta name="twitter:card" content="summary_large_image">
  <meta name="twitter:title" content="{t}">
  <meta name="twitter:description" content="Confira este produto na nossa loja!">
  <meta name="twitter:image" content="{c}">
  <style>{_STYLE}</style>
</head>
<body>
  <div class="lightbox">
    <div class="slider">
      {_slides(images, title)}
      {nav}
    </div>
    <div class="info">
      <div class="title">{t}</div>
      <a class="link" href="{escape(link)}" target="_blank">{escape(link)}</a>
      <div><a class="btn" href="{escape(link)}" target="_blank">Visitar Produto</a></div>
    </div>
  </div>
  <script>{_SCRIPT}</script>
</body>
</html>
"""


def render_not_found() -> str:
    return """<!DOCTYPE html>
<html>
<head>
  <meta charset="UTF-8">
  <title>Produto não encontrado</title>
  <meta property="og:title" content="Produto não encontrado">
  <meta property="og:description" content="Este produto não existe mais">
</head>
<body>
  <h1>Produto não encontrado</h1>
</body>
</html>
"""
