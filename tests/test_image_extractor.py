"""Tests for image extraction and asset naming."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from converters.asset_namer import AssetNamer
from converters.errors import MathExpressionError
from converters.image_extractor import ImageExtractor
from converters.markdown_tree import parse, serialize
from models import ConversionSettings, DocumentRecord

PNG_URL = 'https://cdn.nlark.com/yuque/0/2023/png/1234/1690000000000-abc.png'
MATH_URL = 'https://cdn.nlark.com/yuque/__latex/9f8e.svg#card=math&code=x%5E2%2By&id=Qx1'


@pytest.fixture
def doc():
    return DocumentRecord(namespace='team/book', url='intro', file_path='team/book/Intro')


class TestAssetNamer:

    def test_remote_filename_ignores_query(self):
        assert AssetNamer.remote_filename(PNG_URL + '?x-oss-process=image') == '1690000000000-abc.png'

    def test_url_without_filename_is_named_by_hash(self, doc):
        namer = AssetNamer(Path('/vault'))
        first = namer.remote_filename('https://cdn.nlark.com/yuque/0/2023/')
        second = namer.remote_filename('https://cdn.nlark.com/yuque/0/2024/')

        assert len(first) == 16
        assert first != second
        assert first == namer.remote_filename('https://cdn.nlark.com/yuque/0/2023/')
        assert namer.destination(doc, 'https://cdn.nlark.com/yuque/0/2023/') == Path(
            f'/vault/team/book/assets/intro/{first}'
        )

    def test_relative_name(self, doc):
        namer = AssetNamer(Path('/vault'))
        assert namer.relative_name(doc, PNG_URL) == 'intro/1690000000000-abc.png'

    def test_destination_is_namespace_scoped(self, doc):
        namer = AssetNamer(Path('/vault'))
        assert namer.destination(doc, PNG_URL) == Path('/vault/team/book/assets/intro/1690000000000-abc.png')


class TestImageExtractor:

    def setup_extractor(self, tmp_path):
        schedule = Mock()
        extractor = ImageExtractor(ConversionSettings(output_dir=tmp_path), schedule)
        return extractor, schedule

    def test_remote_image_becomes_asset(self, tmp_path, doc):
        extractor, schedule = self.setup_extractor(tmp_path)
        text = f'![screenshot]({PNG_URL} "caption")\n'
        tree = parse(text)

        assets = extractor.extract(tree, doc)

        destination = tmp_path / 'team/book/assets/intro/1690000000000-abc.png'
        schedule.assert_called_once_with(PNG_URL, destination)
        assert len(assets) == 1
        assert assets[0].local_path == 'intro/1690000000000-abc.png'
        assert assets[0].destination == destination
        assert serialize(tree, text) == "![IMAGE](intro/1690000000000-abc.png)\n"

    def test_math_image_becomes_placeholder(self, tmp_path, doc):
        extractor, schedule = self.setup_extractor(tmp_path)
        text = f"![]({MATH_URL})\n"
        tree = parse(text)

        assets = extractor.extract(tree, doc)

        schedule.assert_not_called()
        assert assets == []
        assert serialize(tree, text) == "![MATH](x%5E2%2By)\n"

    def test_malformed_math_raises(self, tmp_path, doc):
        extractor, _ = self.setup_extractor(tmp_path)
        tree = parse("![](https://cdn.nlark.com/yuque/__latex/9f8e.svg#card=math&code=x)\n")

        with pytest.raises(MathExpressionError):
            extractor.extract(tree, doc)

    def test_math_without_fragment_raises(self, tmp_path, doc):
        extractor, _ = self.setup_extractor(tmp_path)
        tree = parse("![](https://cdn.nlark.com/yuque/__latex/9f8e.svg)\n")

        with pytest.raises(MathExpressionError):
            extractor.extract(tree, doc)

    @pytest.mark.parametrize('source', [
        "![local](images/a.png)\n",
        "![plain](http://example.com/a.png)\n",
    ])
    def test_non_https_images_untouched(self, tmp_path, doc, source):
        extractor, schedule = self.setup_extractor(tmp_path)
        tree = parse(source)

        assert extractor.extract(tree, doc) == []
        schedule.assert_not_called()
        assert serialize(tree, source) == source

    def test_every_image_is_scheduled(self, tmp_path, doc):
        extractor, schedule = self.setup_extractor(tmp_path)
        text = (
            "![a](https://cdn.nlark.com/yuque/0/a.png) text\n"
            "\n"
            "- ![b](https://cdn.nlark.com/yuque/0/b.jpeg)\n"
        )
        tree = parse(text)

        assets = extractor.extract(tree, doc)

        assert [asset.local_path for asset in assets] == ['intro/a.png', 'intro/b.jpeg']
        assert schedule.call_count == 2
        assert serialize(tree, text) == "![IMAGE](intro/a.png) text\n\n- ![IMAGE](intro/b.jpeg)\n"
