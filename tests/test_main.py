from main import App, build_simulation, main


def test_run_prints_status_board(capsys):
    main(["run", "--ticks", "3"])
    out = capsys.readouterr().out
    assert "--- Tick 3" in out
    assert "T1 - Alpha → Delta" in out


def test_report_every_skips_ticks(capsys):
    app = App(build_simulation(None, 1.0), report_every=5)
    app.run_ticks(10)
    out = capsys.readouterr().out
    assert out.count("--- Tick") == 2


def test_build_simulation_clamps_speed():
    assert build_simulation(None, 10.0).speed_multiplier == 3.0
