"""
Service layer

Pure computation on the lobby snapshot, no persistence and no status
bookkeeping beyond what each helper documents:
- naming_service: lobby codes, player ids, host secrets
- word_service: word pairs and per-lobby pair selection
- role_service: role counts, dealing roles, opening speaking order
- elimination_service: speaking order after eliminations, auto-win
- presence_service: heartbeat clock, pruning of silent players
- vote_service: informational votes
- view_service: public / private projections for the API
"""
