import pytest

from kotobaminer.segmentation.base import PartOfSpeech, Token


def words_of(tokenize, text):
    from kotobaminer.segmentation.matcher import WordRuleMatcher

    return WordRuleMatcher().match(tokenize(text))


class TestToken:
    def test_from_feature_parses_columns(self, make_token):
        token = make_token("食べ", start=3)
        assert token.pos1 == "動詞"
        assert token.conjugation_type == "下一段-バ行"
        assert token.lemma == "食べる"
        assert token.reading == "タベ"
        assert token.lemma_reading == "タベル"
        assert (token.start, token.end) == (3, 5)

    def test_short_feature_falls_back_to_surface(self):
        token = Token.from_feature("ほげ", "名詞,普通名詞,一般,*,*,*", is_unknown=True)
        assert token.lemma == "ほげ"
        assert token.reading == "ほげ"
        assert token.lemma_reading == "ほげ"
        assert token.is_unknown

    def test_empty_pronunciation_falls_back_to_surface(self, make_token):
        token = make_token("。")
        assert token.reading == "。"
        assert token.lemma == "。"


class TestUnidicHelpers:
    def test_katakana_to_hiragana(self):
        from kotobaminer.segmentation.unidic import katakana_to_hiragana

        assert katakana_to_hiragana("タベル") == "たべる"
        assert katakana_to_hiragana("ベンキョー") == "べんきょー"
        assert katakana_to_hiragana("食べル") == "食べる"

    def test_is_kana(self):
        from kotobaminer.segmentation.unidic import is_kana

        assert is_kana("たべる")
        assert is_kana("パン")
        assert not is_kana("食べる")
        assert not is_kana("")

    @pytest.mark.parametrize(
        "surface, expected",
        [
            ("猫", PartOfSpeech.NOUN),
            ("東京", PartOfSpeech.PROPER_NOUN),
            ("三", PartOfSpeech.NUMBER),
            ("食べる", PartOfSpeech.VERB),
            ("静か", PartOfSpeech.ADJECTIVE),
            ("は", PartOfSpeech.PARTICLE),
            ("た", PartOfSpeech.PARTICLE),
            ("です", PartOfSpeech.COPULA),
            ("お", PartOfSpeech.PREFIX),
            ("さん", PartOfSpeech.SUFFIX),
            ("私", PartOfSpeech.PRONOUN),
            ("。", PartOfSpeech.SYMBOL),
        ],
    )
    def test_default_part_of_speech(self, make_token, surface, expected):
        from kotobaminer.segmentation.unidic import default_part_of_speech

        assert default_part_of_speech(make_token(surface)) is expected

    def test_unknown_token_defaults_to_unknown(self):
        from kotobaminer.segmentation.unidic import default_part_of_speech

        token = Token.from_feature("ほ", "名詞,普通名詞,一般,*,*,*", is_unknown=True)
        assert default_part_of_speech(token) is PartOfSpeech.UNKNOWN

    def test_unrecognized_tag_defaults_to_unknown(self):
        from kotobaminer.segmentation.unidic import default_part_of_speech

        assert default_part_of_speech(Token.from_feature("x", "")) is PartOfSpeech.UNKNOWN

    def test_part_of_speech_parse(self):
        assert PartOfSpeech.parse("Proper_Noun") is PartOfSpeech.PROPER_NOUN
        assert PartOfSpeech.parse("SYMBOL") is PartOfSpeech.SYMBOL
        with pytest.raises(ValueError):
            PartOfSpeech.parse("gerund")


class TestRules:
    def test_default_rules_are_ordered_and_named(self):
        from kotobaminer.segmentation.rules import create_default_rules

        names = [rule.name for rule in create_default_rules()]
        assert len(names) == 13
        assert len(set(names)) == 13
        assert names[0] == "auxiliary after auxiliary"
        assert names[-1] == "adjectival-possible noun + na"

    def test_rule_match_reports_span_and_pos(self, tokenize):
        from kotobaminer.segmentation.rules import create_default_rules

        rules = {rule.name: rule for rule in create_default_rules()}
        tokens = tokenize("お茶")
        match = rules["prefix + noun"].match(tokens, 0, [])
        assert (match.start, match.end) == (0, 2)
        assert match.consumed == 2
        assert match.part_of_speech is PartOfSpeech.NOUN

    def test_rule_does_not_match_wrong_token(self, tokenize):
        from kotobaminer.segmentation.rules import create_default_rules

        rules = {rule.name: rule for rule in create_default_rules()}
        tokens = tokenize("猫茶")
        assert rules["prefix + noun"].match(tokens, 0, []) is None

    def test_merge_rule_needs_previous_word(self, make_token):
        from kotobaminer.segmentation.rules import (
            MergeWithPrevious,
            Rule,
            TokenMatcher,
            any_of,
        )

        rule = Rule(
            name="any noun merges",
            current=TokenMatcher(pos1=any_of("名詞")),
            action=MergeWithPrevious(),
        )
        assert rule.match([make_token("猫")], 0, []) is None

    def test_negated_matcher(self, make_token):
        from kotobaminer.segmentation.rules import TokenMatcher, none_of

        matcher = TokenMatcher(surface=none_of("な"))
        assert matcher.matches(make_token("た"))
        assert not matcher.matches(make_token("な"))

    def test_rule_order_decides_precedence(self, tokenize):
        from kotobaminer.segmentation.matcher import WordRuleMatcher
        from kotobaminer.segmentation.rules import (
            CreateWord,
            Rule,
            TokenMatcher,
            any_of,
        )

        as_noun = Rule(
            name="prefix alone",
            current=TokenMatcher(pos1=any_of("接頭辞")),
            action=CreateWord(PartOfSpeech.OTHER),
        )
        tokens = tokenize("お茶")

        first = WordRuleMatcher([as_noun] + WordRuleMatcher().rules).match(tokens)
        assert [w.surface for w in first] == ["お", "茶"]
        assert first[0].part_of_speech is PartOfSpeech.OTHER

        last = WordRuleMatcher(WordRuleMatcher().rules + [as_noun]).match(tokens)
        assert [w.surface for w in last] == ["お茶"]

    def test_fingerprint_follows_rule_content(self):
        from kotobaminer.segmentation.matcher import WordRuleMatcher
        from kotobaminer.segmentation.rules import (
            CreateWord,
            Rule,
            TokenMatcher,
            any_of,
            create_default_rules,
        )

        default = WordRuleMatcher().fingerprint
        assert WordRuleMatcher(create_default_rules()).fingerprint == default
        assert WordRuleMatcher(create_default_rules()[::-1]).fingerprint != default

        extra = Rule(
            name="cat as pronoun",
            current=TokenMatcher(surface=any_of("猫")),
            action=CreateWord(PartOfSpeech.PRONOUN),
        )
        assert WordRuleMatcher([extra] + create_default_rules()).fingerprint != default


class TestWordRuleMatcher:
    def test_verb_with_auxiliaries_keeps_dictionary_lemma(self, tokenize):
        words = words_of(tokenize, "パンを食べました。")
        assert [w.surface for w in words] == ["パン", "を", "食べました", "。"]
        verb = words[2]
        assert verb.part_of_speech is PartOfSpeech.VERB
        assert verb.lemma == "食べる"
        assert verb.lemma_reading == "タベル"
        assert verb.reading == "タベマシタ"

    def test_verb_tai_becomes_adjective(self, tokenize):
        words = words_of(tokenize, "行きたい")
        assert len(words) == 1
        assert words[0].part_of_speech is PartOfSpeech.ADJECTIVE
        assert words[0].lemma == "行く"

    def test_adjective_negation(self, tokenize):
        words = words_of(tokenize, "高くない")
        assert [w.surface for w in words] == ["高くない"]
        assert words[0].lemma == "高い"

    def test_te_form(self, tokenize):
        words = words_of(tokenize, "食べて")
        assert [w.surface for w in words] == ["食べて"]
        assert words[0].lemma == "食べる"

    def test_compound_noun(self, tokenize):
        words = words_of(tokenize, "東京大学")
        assert len(words) == 1
        assert words[0].part_of_speech is PartOfSpeech.COMPOUND_NOUN
        assert words[0].lemma == "東京大学"

    def test_prefix_noun_uses_second_token_as_main(self, tokenize):
        (word,) = words_of(tokenize, "お茶")
        assert word.surface == "お茶"
        assert word.part_of_speech is PartOfSpeech.NOUN
        assert word.head_lemma == "茶"
        assert word.segment == "お茶"

    def test_suffix_and_numbers(self, tokenize):
        assert [w.surface for w in words_of(tokenize, "田中さん")] == ["田中さん"]
        (number,) = words_of(tokenize, "三十")
        assert number.part_of_speech is PartOfSpeech.NUMBER
        assert number.lemma == "三十"

    def test_suru_verb(self, tokenize):
        (word,) = words_of(tokenize, "勉強しました")
        assert word.part_of_speech is PartOfSpeech.SURU_VERB
        assert word.lemma == "勉強する"
        assert word.surface == "勉強しました"

    @pytest.mark.parametrize("text, lemma", [("静かな", "静か"), ("綺麗な", "綺麗")])
    def test_adjectival_nouns(self, tokenize, text, lemma):
        words = words_of(tokenize, text + "町")
        assert words[0].surface == text
        assert words[0].part_of_speech is PartOfSpeech.ADJECTIVAL_NOUN
        assert words[0].head_lemma == lemma
        assert words[1].surface == "町"

    def test_unknown_tokens_are_unknown_words(self, tokenize):
        words = words_of(tokenize, "ほげ")
        assert words
        assert all(w.part_of_speech is PartOfSpeech.UNKNOWN for w in words)

    @pytest.mark.parametrize(
        "text",
        [
            "私は東京大学で勉強しました。",
            "お茶を飲みたい、 静かな町に行きたい。",
            "  田中さんは三十 ",
            "ほげほげ食べなかった",
        ],
    )
    def test_words_cover_sentence_exactly(self, tokenize, text):
        from kotobaminer.segmentation.matcher import WordRuleMatcher

        tokens = tokenize(text)
        words = WordRuleMatcher().match(tokens)
        assert "".join(w.surface for w in words) == text
        assert [t for w in words for t in w.tokens] == tokens

    def test_words_reference_sentence(self, tokenize):
        from kotobaminer.extractors.base import Sentence
        from kotobaminer.segmentation.matcher import WordRuleMatcher
        from pathlib import Path

        sentence = Sentence(source_id=0, path=Path("a.txt"), index=0, text="猫")
        (word,) = WordRuleMatcher().match(tokenize("猫"), sentence)
        assert word.sentence is sentence

    def test_empty_tokens(self):
        from kotobaminer.segmentation.matcher import WordRuleMatcher

        assert WordRuleMatcher().match([]) == []


class TestTokenizerAdapter:
    def test_empty_input_is_empty_sequence(self, tokenize):
        assert tokenize("") == []

    @pytest.mark.parametrize(
        "text",
        ["私は猫", " 私は 猫 ", "食べる。　犬", "ほげ", "\t"],
    )
    def test_spans_reconstruct_text(self, tokenize, text):
        tokens = tokenize(text)
        assert "".join(t.surface for t in tokens) == text
        position = 0
        for token in tokens:
            assert token.start == position
            assert text[token.start:token.end] == token.surface
            position = token.end
        assert position == len(text)

    def test_whitespace_is_standalone_token(self, tokenize):
        tokens = tokenize("猫 犬")
        assert [t.surface for t in tokens] == ["猫", " ", "犬"]
        assert tokens[1].pos1 == "空白"

    def test_tagger_failure_is_segmentation_error(self, fake_dictionary, tagger_cls):
        from kotobaminer.errors import SegmentationError
        from kotobaminer.segmentation.tokenizer import TokenizerAdapter

        fake_dictionary.tagger = tagger_cls(fail_on="犬")
        with pytest.raises(SegmentationError):
            TokenizerAdapter(fake_dictionary).tokenize("犬")

    def test_misaligned_nodes_are_segmentation_error(self, fake_dictionary, node_cls):
        from kotobaminer.errors import SegmentationError
        from kotobaminer.segmentation.tokenizer import TokenizerAdapter

        fake_dictionary.tagger = lambda text: [node_cls("猫", "名詞")]
        with pytest.raises(SegmentationError):
            TokenizerAdapter(fake_dictionary).tokenize("犬")


@pytest.fixture(scope="module")
def real_dictionary():
    from kotobaminer.errors import DictionaryUnavailable
    from kotobaminer.segmentation.dictionary import load_dictionary

    try:
        return load_dictionary()
    except DictionaryUnavailable as e:
        pytest.skip(f"MeCab dictionary not available: {e}")


class TestWithRealDictionary:
    @pytest.mark.parametrize(
        "text",
        [
            "私は昨日、東京で美味しいラーメンを食べました。",
            "  吾輩は猫である。 名前はまだ無い。",
            "ＡＢＣ abc 123 ！？",
        ],
    )
    def test_round_trip(self, real_dictionary, text):
        from kotobaminer.segmentation.matcher import WordRuleMatcher
        from kotobaminer.segmentation.tokenizer import TokenizerAdapter

        tokens = TokenizerAdapter(real_dictionary).tokenize(text)
        assert "".join(t.surface for t in tokens) == text
        words = WordRuleMatcher().match(tokens)
        assert "".join(w.surface for w in words) == text

    def test_inflected_verb_lemma(self, real_dictionary):
        from kotobaminer.segmentation.matcher import WordRuleMatcher
        from kotobaminer.segmentation.tokenizer import TokenizerAdapter

        words = WordRuleMatcher().match(
            TokenizerAdapter(real_dictionary).tokenize("食べました")
        )
        assert [w.surface for w in words] == ["食べました"]
        assert words[0].lemma == "食べる"
