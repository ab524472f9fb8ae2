"""Basic import tests to verify package structure."""


def test_import_forcesim():
    """Verify main package imports."""
    import forcesim
    assert forcesim.__version__ == "0.1.0"


def test_import_core():
    """Verify core module structure exists."""
    from forcesim import core
    assert hasattr(core, "__doc__")
    assert hasattr(core, "simulation")


def test_import_analysis():
    """Verify analysis module structure exists."""
    from forcesim import analysis
    assert hasattr(analysis, "measure_layout")


def test_import_viz():
    """Verify viz module structure exists."""
    from forcesim import viz
    assert hasattr(viz, "plot_layout")
