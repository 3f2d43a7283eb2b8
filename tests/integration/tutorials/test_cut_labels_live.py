from src.core.tutorials import CutLabelsTutorial


def test_cut_labels_live(live_api_factory):
    tutorial = CutLabelsTutorial(live_api_factory)
    tutorial.set_up()
    try:
        results = tutorial.run_cut_labels()
    finally:
        tutorial.tear_down()

    assert list(results) == ["LDNOpen_before_trades", "LDNOpen", "SGPClose", "NYOpen", "LDNClose"]
