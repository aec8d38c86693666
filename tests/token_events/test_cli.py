"""
CLI tests.
"""

import asyncio
from unittest.mock import AsyncMock, patch

from token_events import cli
from token_events.models import DispatchResult

from tests.token_events.factories import EIGHTBID_MARKETPLACE, OBJKT_MARKETPLACE


class TestParser:
    """Tests for argument parsing and filter building."""
    
    def test_filters(self):
        args = cli.create_parser().parse_args(["--level-from", "10", "--level-to", "20"])
        
        filters = cli.build_filters(args, [OBJKT_MARKETPLACE, EIGHTBID_MARKETPLACE, OBJKT_MARKETPLACE])
        
        assert filters == {
            "level.ge": 10,
            "level.le": 20,
            "target.in": sorted([OBJKT_MARKETPLACE, EIGHTBID_MARKETPLACE]),
        }
    
    def test_no_filters(self):
        args = cli.create_parser().parse_args([])
        
        assert cli.build_filters(args, []) == {}
        assert args.strict is False
        assert args.log_level == "INFO"


class TestMain:
    """Tests for main()."""
    
    def test_exit_code_from_run(self):
        with patch.object(cli, "run", AsyncMock(return_value=2)), \
                patch.object(cli, "configure_logging"):
            assert cli.main(["--strict"]) == 2
    
    def test_run_without_defects_returns_zero(self, settings):
        args = cli.create_parser().parse_args(["--strict"])
        result = DispatchResult()
        
        with patch.object(cli.IngestionService, "ingest_transactions", AsyncMock(return_value=result)):
            assert asyncio.run(cli.run(args, settings)) == 0
