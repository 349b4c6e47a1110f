import io
import math

import pytest

from skyview.catalog import HYG_LOADER, Asterism, StarCatalogue, StarCatalogueBuilder, load_catalogue
from skyview.constellations import ASTERISM_LOADER, iter_asterism_ids
from skyview.errors import InvalidInputError

HYG_CSV = """\
id,hip,proper,ra,dec,mag,ci,bayer,con,rarad,decrad
0,,Sol,0.000000,0.000000,-26.700,0.656,,,0.0,0.0
1,11767,Polaris,2.529750,89.264109,1.970,0.636,Alp,UMi,0.6622999,1.5579645
2,32349,Sirius,6.752481,-16.716116,-1.440,0.009,Alp,CMa,1.7677943,-0.2917512
3,27989,,5.919529,7.407063,0.450,1.500,Alp,Ori,,
4,,,2.000000,20.000000,7.000,0.100,,,,
"""


def test_asterism_indices_follow_asterism_order(stars):
    zigzag = Asterism((stars[3], stars[1], stars[5]), name="zigzag")
    catalogue = StarCatalogue(stars, [zigzag])
    assert catalogue.asterism_indices(zigzag) == [3, 1, 5]
    assert catalogue.asterisms == frozenset({zigzag})
    assert len(catalogue) == len(stars)


def test_unknown_asterism_raises_key_error(catalogue, stars):
    with pytest.raises(KeyError):
        catalogue.asterism_indices(Asterism((stars[0],), name="nope"))


def test_asterism_with_foreign_star_is_rejected(stars):
    with pytest.raises(InvalidInputError):
        StarCatalogue(stars[:2], [Asterism((stars[0], stars[4]))])


def test_empty_asterism_is_rejected():
    with pytest.raises(InvalidInputError):
        Asterism(())


def test_catalogue_is_read_only(catalogue):
    assert isinstance(catalogue.stars, tuple)
    asterisms = catalogue.asterisms
    assert isinstance(asterisms, frozenset)


def test_hyg_loader():
    catalogue = StarCatalogueBuilder().load_from(io.StringIO(HYG_CSV), HYG_LOADER).build()
    polaris, sirius, betelgeuse, anonymous = catalogue.stars

    assert len(catalogue) == 4
    assert (polaris.hipparcos_id, polaris.name) == (11767, "Polaris")
    assert polaris.equatorial_pos.ra_deg == pytest.approx(math.degrees(0.6622999))
    assert sirius.magnitude == -1.44
    # no proper name, no radians: bayer designation and ra in hours
    assert betelgeuse.name == "Alp Ori"
    assert betelgeuse.equatorial_pos.ra_deg == pytest.approx(5.919529 * 15.0)
    assert (anonymous.hipparcos_id, anonymous.name) == (0, "?")
    assert anonymous.equatorial_pos.ra_deg == pytest.approx(30.0)


def test_iter_asterism_ids_skips_comments_and_blanks():
    text = "# belt\n26727,26311,25930\n\n  27989, 24436 \n"
    assert list(iter_asterism_ids(io.StringIO(text))) == [(2, [26727, 26311, 25930]), (4, [27989, 24436])]


def test_asterism_loader_resolves_hipparcos_ids():
    builder = StarCatalogueBuilder().load_from(io.StringIO(HYG_CSV), HYG_LOADER)
    builder.load_from(io.StringIO("27989,11767\n"), ASTERISM_LOADER)
    catalogue = builder.build()
    (asterism,) = catalogue.asterisms
    assert asterism.name == "asterism-1"
    assert catalogue.asterism_indices(asterism) == [2, 0]


@pytest.mark.parametrize("line", ["27989,99999", "27989,abc"])
def test_asterism_loader_rejects_bad_lines(line):
    builder = StarCatalogueBuilder().load_from(io.StringIO(HYG_CSV), HYG_LOADER)
    with pytest.raises(InvalidInputError):
        builder.load_from(io.StringIO(line), ASTERISM_LOADER)


def test_load_catalogue_reads_and_caches(tmp_path):
    stars_path = tmp_path / "stars.csv"
    asterisms_path = tmp_path / "asterisms.txt"
    stars_path.write_text(HYG_CSV, encoding="utf-8")
    asterisms_path.write_text("11767,32349\n", encoding="utf-8")

    catalogue = load_catalogue(stars_path, asterisms_path)
    assert len(catalogue) == 4
    assert len(catalogue.asterisms) == 1
    assert load_catalogue(stars_path, asterisms_path) is catalogue


def test_load_catalogue_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_catalogue(tmp_path / "missing.csv")
