"""Better Bets: +EV and arbitrage scanning over sportsbook odds."""
