"""
Tests for the simulated deployment wiring.
"""

from decimal import Decimal

from main import create_simulated_deployment


class TestSimulatedDeployment:
    """Tests for create_simulated_deployment()"""

    def test_estimate(self):
        engine = create_simulated_deployment()

        estimate = engine.estimate()

        assert estimate.quote1 == Decimal("0.4")
        assert estimate.quote2 == Decimal("1040")
        assert estimate.profitable

    def test_owner_runs_route(self):
        engine = create_simulated_deployment()

        execution = engine.initiate(engine.owner)

        assert execution.retained == Decimal("39.1")
        assert engine.route.principal_asset.balance_of(engine.address) == Decimal("39.1")
        assert engine.facility.loans_advanced == 1
