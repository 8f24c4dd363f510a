"""Tests for packing thread entities into messages."""

from twitter_relay.chunker import SEPARATOR, ChunkBudgets, chunk_entities
from twitter_relay.models import ThreadEntity


def texts(chunks) -> list[str]:
    return [c.text for c in chunks]


class TestChunkBudgets:
    def test_first_budget_by_trigger(self):
        budgets = ChunkBudgets()
        assert budgets.first("text") == 3072
        assert budgets.first("caption") == 768
        assert budgets.first(None) == 4096

    def test_custom_values(self):
        budgets = ChunkBudgets(text=100, first_text=50, first_caption=20)
        assert budgets.first("text") == 50
        assert budgets.first("caption") == 20
        assert budgets.first(None) == 100


class TestChunkEntities:
    def test_empty_thread_yields_nothing(self):
        assert chunk_entities([], first_budget=3072) == []

    def test_short_texts_fold_together(self):
        entities = [ThreadEntity("a"), ThreadEntity("b"), ThreadEntity("c")]
        chunks = chunk_entities(entities, first_budget=3072)
        assert texts(chunks) == ["a\n\nb\n\nc"]
        assert chunks[0].media == ()
        assert len(chunks[0].entities) == 3

    def test_media_entities_start_new_chunks(self, five_entities, video):
        chunks = chunk_entities(five_entities, first_budget=3072)

        assert texts(chunks) == ["zero\n\none", "two", "three", "four"]
        assert [c.media for c in chunks] == [(), (video,), (), (video,)]

    def test_first_entity_media_stays_in_first_chunk(self, photo):
        entities = [ThreadEntity("head", media=(photo,)), ThreadEntity("tail")]
        chunks = chunk_entities(entities, first_budget=768)
        assert texts(chunks) == ["head", "tail"]
        assert chunks[0].media == (photo,)

    def test_budget_overflow_splits(self):
        entities = [ThreadEntity("x" * 6), ThreadEntity("y" * 6), ThreadEntity("z" * 6)]
        # 6 + 2 + 6 = 14 fits, adding another 8 does not
        chunks = chunk_entities(entities, first_budget=14, rest_budget=14)
        assert texts(chunks) == ["xxxxxx\n\nyyyyyy", "zzzzzz"]

    def test_exact_budget_fits(self):
        entities = [ThreadEntity("ab"), ThreadEntity("cd")]
        chunks = chunk_entities(entities, first_budget=6)
        assert len(chunks) == 1

    def test_oversized_entity_gets_own_chunk(self):
        entities = [
            ThreadEntity("short"),
            ThreadEntity("o" * 50),
            ThreadEntity("after"),
        ]
        chunks = chunk_entities(entities, first_budget=20, rest_budget=20)
        assert texts(chunks) == ["short", "o" * 50, "after"]

    def test_oversized_first_entity(self):
        chunks = chunk_entities([ThreadEntity("o" * 50)], first_budget=10)
        assert texts(chunks) == ["o" * 50]

    def test_first_group_uses_group_budget(self, photo, video):
        entities = [
            ThreadEntity("head", media=(photo, video)),
            ThreadEntity("next"),
        ]
        chunks = chunk_entities(
            entities, first_budget=1, rest_budget=1, group_budget=100
        )
        assert len(chunks) == 2
        assert chunks[0].media == (photo, video)

    def test_budget_resets_after_first_chunk(self):
        entities = [ThreadEntity("a" * 5) for _ in range(4)]
        chunks = chunk_entities(entities, first_budget=5, rest_budget=12)
        assert texts(chunks) == ["aaaaa", "aaaaa\n\naaaaa", "aaaaa"]

    def test_order_and_content_preserved(self, five_entities):
        chunks = chunk_entities(five_entities, first_budget=768)
        folded = [e for c in chunks for e in c.entities]
        assert folded == five_entities
        for chunk in chunks:
            assert chunk.text == SEPARATOR.join(e.text for e in chunk.entities)

    def test_chunks_stay_within_budget(self):
        entities = [ThreadEntity("w" * n) for n in (30, 10, 25, 5, 40, 12, 3)]
        chunks = chunk_entities(entities, first_budget=40, rest_budget=45)
        assert len(chunks[0].text) <= 40
        for chunk in chunks[1:]:
            assert len(chunk.text) <= 45

    def test_title_comes_out_of_first_budget(self):
        entities = [ThreadEntity("a" * 2045), ThreadEntity("b" * 2045)]

        assert len(chunk_entities(entities, first_budget=4096)) == 1
        chunks = chunk_entities(entities, first_budget=4096, title="Author")
        assert texts(chunks) == ["a" * 2045, "b" * 2045]

    def test_title_only_affects_first_chunk(self):
        entities = [ThreadEntity("x" * 10) for _ in range(3)]
        chunks = chunk_entities(
            entities, first_budget=18, rest_budget=22, title="Tt"
        )
        # 18 - 4 leaves room for one entity, then 10 + 2 + 10 fits 22
        assert texts(chunks) == ["x" * 10, "x" * 10 + "\n\n" + "x" * 10]
