from services import faq


def test_find_answer_matches_keywords_case_insensitively():
    assert faq.find_answer("Como RENOVAR meu plano?") == faq.get_topic("planos").answer
    assert faq.find_answer("posso mandar meu exame?") == faq.get_topic("arquivos").answer


def test_find_answer_without_match():
    assert faq.find_answer("bom dia") is None
    assert faq.find_answer("") is None
    assert faq.find_answer(None) is None


def test_topic_ids_are_unique():
    ids = [topic.id for topic in faq.FAQ_TOPICS]
    assert len(ids) == len(set(ids))
    assert faq.get_topic("nope") is None
