"""Recipe page fixtures shared by the web extraction tests."""

import json

import pytest

from recipe_extract.web import FetchedPage

RECIPE_JSON_LD = {
    "@context": "https://schema.org",
    "@graph": [
        {"@type": "Person", "@id": "#chef", "name": "Ann Baker"},
        {
            "@type": "Recipe",
            "name": "Banana Bread",
            "author": {"@id": "#chef"},
            "image": ["/img/bread.jpg"],
            "recipeYield": "8 slices",
            "recipeIngredient": [
                "3 ripe bananas",
                "1/3 cup melted butter",
                "1 tsp baking soda",
                "3/4 cup sugar",
                "1 1/2 cups flour",
            ],
            "recipeInstructions": [
                {
                    "@type": "HowToSection",
                    "name": "Prep",
                    "itemListElement": [
                        {"@type": "HowToStep", "text": "Preheat the oven to 350F."},
                        {"@type": "HowToStep", "text": "Mash the bananas."},
                    ],
                },
                {
                    "@type": "HowToStep",
                    "text": "Stir in the butter &amp; sugar.",
                    "image": "https://cdn.test/step3.jpg",
                },
                "Bake for 60 minutes.",
            ],
            "prepTime": "PT10M",
            "cookTime": "PT1H",
            "totalTime": "PT1H10M",
            "recipeTips": ["Use very ripe bananas."],
        },
    ],
}


def json_ld_page(data: dict) -> str:
    return (
        '<html><head><script type="application/ld+json">'
        f"{json.dumps(data)}"
        "</script></head><body><h1>Banana Bread</h1></body></html>"
    )


MICRODATA_PAGE = """
<html><body>
<div itemscope itemtype="https://schema.org/Recipe">
  <h2 itemprop="name">Tomato Soup</h2>
  <span itemprop="author">Sam Cook</span>
  <meta itemprop="prepTime" content="PT15M">
  <meta itemprop="cookTime" content="PT30M">
  <span itemprop="recipeYield">Serves 4</span>
  <ul>
    <li itemprop="recipeIngredient">6 tomatoes</li>
    <li itemprop="recipeIngredient">1 onion</li>
    <li itemprop="recipeIngredient">2 cups stock</li>
  </ul>
  <ol>
    <li itemprop="recipeInstructions">Roast the tomatoes and onion.</li>
    <li itemprop="recipeInstructions">Blend with the stock. <img src="/img/blend.jpg"></li>
  </ol>
</div>
</body></html>
"""

PLAIN_PAGE = """
<html><head><meta property="og:image" content="/img/hero.jpg"></head><body>
<nav><ul><li>Home</li><li>About</li><li>Contact</li></ul></nav>
<h1>Weeknight Chili</h1>
<p class="byline">By Maria Lopez</p>
<p>Serves 6. Prep time: 15 minutes. Cook time: 45 minutes.</p>
<ul>
  <li>1 lb ground beef</li>
  <li>1 onion, diced</li>
  <li>2 cans kidney beans</li>
  <li>1 tbsp chili powder</li>
</ul>
<ol>
  <li>Brown the beef with the onion in a large pot.</li>
  <li>Stir in the beans and chili powder.</li>
  <li>Simmer for 45 minutes until thick.</li>
</ol>
<p class="tip">Tip: make it a day ahead because the flavors deepen.</p>
</body></html>
"""

EMPTY_SHELL = '<html><body><div id="root"></div></body></html>'


class StaticFetcher:
    def __init__(self, html: str = "", *, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.requested: list[str] = []

    async def fetch(self, url: str) -> FetchedPage:
        self.requested.append(url)
        if self.error is not None:
            raise self.error
        return FetchedPage(url=url, status=200, html=self.html)


class FakeRenderer:
    def __init__(self, html: str = "", *, error: Exception | None = None) -> None:
        self.html = html
        self.error = error
        self.rendered: list[str] = []

    async def render(self, url: str) -> str:
        self.rendered.append(url)
        if self.error is not None:
            raise self.error
        return self.html


@pytest.fixture
def recipe_json_ld() -> dict:
    return json.loads(json.dumps(RECIPE_JSON_LD))


@pytest.fixture
def json_ld_html(recipe_json_ld) -> str:
    return json_ld_page(recipe_json_ld)


@pytest.fixture
def microdata_html() -> str:
    return MICRODATA_PAGE


@pytest.fixture
def plain_html() -> str:
    return PLAIN_PAGE


@pytest.fixture
def empty_shell_html() -> str:
    return EMPTY_SHELL


@pytest.fixture
def static_fetcher():
    return StaticFetcher


@pytest.fixture
def fake_renderer():
    return FakeRenderer


@pytest.fixture
def render_json_ld():
    """Factory turning a JSON-LD mapping into a minimal page."""
    return json_ld_page
