"""
Tests for the covers page parser.
"""
from vnshelf.metadata.covers import parse_cover_links

COVERS_PAGE = """
<html><body>
<div class="vncovers">
  <div class="imghover" style="width: 256px; height: 362px">
    <a href="https://t.vndb.org/cv/10/1.jpg"><img src="x"></a>
  </div>
  <div class="imghover" style="width: 256px; height: 400px">
    <a href="https://t.vndb.org/cv/10/2.jpg"><img src="x"></a>
  </div>
  <div class="imghover" style="width:400px;height:225px">
    <a href="https://t.vndb.org/cv/10/3.jpg"><img src="x"></a>
  </div>
  <div class="imghover" style="width: 300px">
    <a href="https://t.vndb.org/cv/10/4.jpg"><img src="x"></a>
  </div>
</div>
</body></html>
"""


def test_first_link_of_each_orientation():
    links = parse_cover_links(COVERS_PAGE)

    assert links == {
        "portrait": "https://t.vndb.org/cv/10/1.jpg",
        "landscape": "https://t.vndb.org/cv/10/3.jpg",
    }


def test_square_image_counts_as_landscape():
    html = ('<div class="vncovers"><div class="imghover" style="width: 200px; height: 200px">'
            '<a href="/sq.jpg"></a></div></div>')
    assert parse_cover_links(html) == {"landscape": "/sq.jpg"}


def test_page_without_covers():
    assert parse_cover_links("<html><body><p>nothing</p></body></html>") == {}
    assert parse_cover_links("") == {}


def test_box_without_link_is_skipped():
    html = ('<div class="vncovers">'
            '<div class="imghover" style="width: 100px; height: 200px"><img src="x"></div>'
            '<div class="imghover" style="width: 100px; height: 300px"><a href="/p.jpg"></a></div>'
            '</div>')
    assert parse_cover_links(html) == {"portrait": "/p.jpg"}
