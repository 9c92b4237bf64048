from pathlib import Path

import pytest

# UniDic feature strings for a small test vocabulary. Columns follow the
# unidic-lite layout: pos1-4, conjugation type/form, lForm, lemma, orth,
# pron, orthBase, pronBase.
LEXICON = {
    "私": "代名詞,*,*,*,*,*,ワタクシ,私,私,ワタシ,私,ワタシ",
    "は": "助詞,係助詞,*,*,*,*,ハ,は,は,ワ,は,ワ",
    "を": "助詞,格助詞,*,*,*,*,ヲ,を,を,オ,を,オ",
    "に": "助詞,格助詞,*,*,*,*,ニ,に,に,ニ,に,ニ",
    "パン": "名詞,普通名詞,一般,*,*,*,パン,パン,パン,パン,パン,パン",
    "食べ": "動詞,一般,*,*,下一段-バ行,連用形-一般,タベル,食べる,食べ,タベ,食べる,タベル",
    "食べる": "動詞,一般,*,*,下一段-バ行,終止形-一般,タベル,食べる,食べる,タベル,食べる,タベル",
    "まし": "助動詞,*,*,*,助動詞-マス,連用形-一般,マス,ます,まし,マシ,ます,マス",
    "た": "助動詞,*,*,*,助動詞-タ,終止形-一般,タ,た,た,タ,た,タ",
    "たい": "助動詞,*,*,*,助動詞-タイ,終止形-一般,タイ,たい,たい,タイ,たい,タイ",
    "ない": "助動詞,*,*,*,助動詞-ナイ,終止形-一般,ナイ,無い,ない,ナイ,ない,ナイ",
    "です": "助動詞,*,*,*,助動詞-デス,終止形-一般,デス,です,です,デス,です,デス",
    "て": "助詞,接続助詞,*,*,*,*,テ,て,て,テ,て,テ",
    "行き": "動詞,非自立可能,*,*,五段-カ行,連用形-一般,イク,行く,行き,イキ,行く,イク",
    "勉強": "名詞,普通名詞,サ変可能,*,*,*,ベンキョウ,勉強,勉強,ベンキョー,勉強,ベンキョー",
    "し": "動詞,非自立可能,*,*,サ行変格,連用形-一般,スル,為る,し,シ,する,スル",
    "静か": "形状詞,一般,*,*,*,*,シズカ,静か,静か,シズカ,静か,シズカ",
    "綺麗": "名詞,普通名詞,形状詞可能,*,*,*,キレイ,綺麗,綺麗,キレー,綺麗,キレー",
    "な": "助動詞,*,*,*,助動詞-ダ,連体形-一般,ダ,だ,な,ナ,だ,ダ",
    "町": "名詞,普通名詞,一般,*,*,*,マチ,町,町,マチ,町,マチ",
    "お": "接頭辞,*,*,*,*,*,オ,御,お,オ,お,オ",
    "茶": "名詞,普通名詞,一般,*,*,*,チャ,茶,茶,チャ,茶,チャ",
    "東京": "名詞,固有名詞,地名,一般,*,*,トウキョウ,トウキョウ,東京,トーキョー,東京,トーキョー",
    "大学": "名詞,普通名詞,一般,*,*,*,ダイガク,大学,大学,ダイガク,大学,ダイガク",
    "田中": "名詞,固有名詞,人名,姓,*,*,タナカ,タナカ,田中,タナカ,田中,タナカ",
    "さん": "接尾辞,名詞的,一般,*,*,*,サン,さん,さん,サン,さん,サン",
    "三": "名詞,数詞,*,*,*,*,サン,三,三,サン,三,サン",
    "十": "名詞,数詞,*,*,*,*,ジュウ,十,十,ジュー,十,ジュー",
    "高く": "形容詞,一般,*,*,形容詞,連用形-一般,タカイ,高い,高く,タカク,高い,タカイ",
    "猫": "名詞,普通名詞,一般,*,*,*,ネコ,猫,猫,ネコ,猫,ネコ",
    "犬": "名詞,普通名詞,一般,*,*,*,イヌ,犬,犬,イヌ,犬,イヌ",
    "水": "名詞,普通名詞,一般,*,*,*,ミズ,水,水,ミズ,水,ミズ",
    "。": "補助記号,句点,*,*,*,*,,。,。,,。,",
    "、": "補助記号,読点,*,*,*,*,,、,、,,、,",
}

UNKNOWN_FEATURE = "名詞,普通名詞,一般,*,*,*"


class FakeNode:
    def __init__(self, surface, feature_raw, white_space="", is_unk=False):
        self.surface = surface
        self.feature_raw = feature_raw
        self.white_space = white_space
        self.is_unk = is_unk


class LexiconTagger:
    """Longest-match tagger over LEXICON that reports whitespace the way MeCab does."""

    def __init__(self, lexicon=None, fail_on=None):
        self.lexicon = lexicon or LEXICON
        self.longest = max(len(k) for k in self.lexicon)
        self.fail_on = fail_on
        self.calls = 0

    def __call__(self, text):
        self.calls += 1
        if self.fail_on and self.fail_on in text:
            raise RuntimeError("tagger failure")
        nodes = []
        space = ""
        i = 0
        while i < len(text):
            if text[i].isspace():
                space += text[i]
                i += 1
                continue
            for size in range(min(self.longest, len(text) - i), 0, -1):
                piece = text[i:i + size]
                if piece in self.lexicon:
                    nodes.append(FakeNode(piece, self.lexicon[piece], space))
                    break
            else:
                piece = text[i]
                nodes.append(FakeNode(piece, UNKNOWN_FEATURE, space, is_unk=True))
            space = ""
            i += len(piece)
        return nodes


@pytest.fixture
def lexicon_tagger():
    return LexiconTagger()


@pytest.fixture
def fake_dictionary(lexicon_tagger):
    from kotobaminer.segmentation.dictionary import DictionaryHandle

    return DictionaryHandle(path=Path("fake-dic"), tagger=lexicon_tagger, name="fake")


@pytest.fixture
def tokenize(fake_dictionary):
    from kotobaminer.segmentation.tokenizer import TokenizerAdapter

    return TokenizerAdapter(fake_dictionary).tokenize


@pytest.fixture
def make_token():
    from kotobaminer.segmentation.base import Token

    def factory(surface, start=0):
        return Token.from_feature(surface, LEXICON[surface], start)

    return factory


@pytest.fixture
def write_corpus(tmp_path):
    """Write {relative path: text} under tmp_path/corpus and return the root."""

    def factory(files):
        root = tmp_path / "corpus"
        root.mkdir(exist_ok=True)
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(text, bytes):
                path.write_bytes(text)
            else:
                path.write_text(text, encoding="utf-8")
        return root

    return factory


@pytest.fixture
def tagger_cls():
    return LexiconTagger


@pytest.fixture
def node_cls():
    return FakeNode
