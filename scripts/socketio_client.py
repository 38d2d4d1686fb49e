#!/usr/bin/env python3
"""
Socket.IO console client for the tic-tac-toe server.

This client connects to the Flask-SocketIO server and allows interactive
gameplay from the command line.

Usage:
    python socketio_client.py http://localhost:4000

Commands:
    create - Create a new game and wait for an opponent
    join <game_id> - Join an existing game
    list - List all games
    exit - Exit the program

In game mode:
    <0-8> - Place your mark on a cell (row-major, 0 is top-left)
    !restart or !r - Reset the board for both players
    !quit or !q - Leave the game and return to the main menu
"""

import sys
import requests
import socketio
from typing import Optional


class TicTacToeSocketIOClient:
    """Socket.IO client for the tic-tac-toe server."""

    def __init__(self, server_url: str):
        self.server_url = server_url.rstrip('/')
        self.sio = socketio.Client()
        self.current_game_id: Optional[str] = None
        self.mark: Optional[str] = None
        self.setup_socketio_handlers()

    def setup_socketio_handlers(self):
        """Set up Socket.IO event handlers."""

        @self.sio.on('updateGame')
        def on_update_game(data):
            self.display_board(data)

        @self.sio.on('opponentLeft')
        def on_opponent_left(data):
            print(f"\n📴 {data.get('message', 'Opponent left')}")

        @self.sio.on('connect')
        def on_connect():
            print("🔌 Socket.IO connected")

        @self.sio.on('disconnect')
        def on_disconnect():
            print("🔌 Socket.IO disconnected")

    def connect(self) -> bool:
        try:
            self.sio.connect(self.server_url)
            return True
        except socketio.exceptions.ConnectionError as e:
            print(f"✗ Could not connect to {self.server_url}: {e}")
            return False

    def create_game(self) -> Optional[str]:
        game_id = self.sio.call('createGame')
        self.current_game_id = game_id
        self.mark = 'X'
        return game_id

    def join_game(self, game_id: str) -> bool:
        response = self.sio.call('joinGame', game_id)
        if not response.get('success'):
            print(f"✗ Could not join: {response.get('reason', 'Unknown error')}")
            return False
        self.current_game_id = game_id
        self.mark = response.get('mark')
        print(f"✓ Joined game {game_id} as {self.mark}")
        self.display_board(response)
        return True

    def make_move(self, index: int):
        response = self.sio.call('makeMove', (self.current_game_id, index))
        if not response.get('success'):
            print(f"✗ {response.get('detail') or response.get('reason', 'Move failed')}")

    def restart_game(self):
        response = self.sio.call('restartGame', self.current_game_id)
        if not response.get('success'):
            print(f"✗ Restart failed: {response.get('reason', 'Unknown error')}")

    def list_games(self):
        """List all games on the server over HTTP."""
        try:
            response = requests.get(f"{self.server_url}/api/games", timeout=5)
            response.raise_for_status()
        except requests.RequestException as e:
            print(f"✗ Failed to list games: {e}")
            return

        games = response.json()['data']['games']
        if not games:
            print("No games on the server")
            return
        for game in games:
            print(f"  {game['game_id']}: {game['players']}/{game['max_players']} players, "
                  f"outcome {game['outcome']}")

    def display_board(self, state: dict):
        """Print a board together with whose turn it is."""
        cells = [c or str(i) for i, c in enumerate(state['board'])]
        print()
        for row in range(3):
            print(' ' + ' | '.join(cells[row * 3:row * 3 + 3]))
            if row < 2:
                print('---+---+---')

        outcome = state.get('outcome', 'undecided')
        if outcome == 'draw':
            print("🤝 Draw")
        elif outcome in ('X', 'O'):
            print(f"🏆 {outcome} wins{' (you)' if outcome == self.mark else ''}")
        else:
            turn = state.get('turnOwner')
            print(f"Turn: {turn}{' (you)' if turn == self.mark else ''}")

    def enter_game_mode(self):
        """Enter interactive game mode."""
        print(f"\n🎮 Game {self.current_game_id}, you play {self.mark}")
        print("Commands: 0-8 to place a mark, !restart/!r to reset, !quit/!q to leave")

        try:
            while self.sio.connected:
                command = input("Game> ").strip()
                if not command:
                    continue

                if command.startswith('!'):
                    action = command[1:].lower()
                    if action in ['quit', 'q']:
                        break
                    elif action in ['restart', 'r']:
                        self.restart_game()
                    else:
                        print(f"Unknown action: !{action}")
                elif command.isdigit():
                    self.make_move(int(command))
                else:
                    print("Enter a cell number 0-8")
        except (EOFError, KeyboardInterrupt):
            print("\n⏹️  Game interrupted")
        finally:
            # The server only forgets a participant on disconnect
            self.sio.disconnect()
            self.current_game_id = None
            self.mark = None
            print("📴 Left game mode")


def main():
    """Main function."""
    if len(sys.argv) != 2:
        print("Usage: python socketio_client.py SERVER_URL")
        print("Example: python socketio_client.py http://localhost:4000")
        sys.exit(1)

    client = TicTacToeSocketIOClient(sys.argv[1])

    print("\nAvailable commands:")
    print("  create - Create a new game")
    print("  join <game_id> - Join a game")
    print("  list - List all games")
    print("  exit - Exit the program")

    try:
        while True:
            print("\n" + "-"*30)
            command = input("Enter command: ").strip()

            if not command:
                continue

            parts = command.split()
            cmd = parts[0].lower()

            if cmd == "exit":
                print("Goodbye!")
                break
            elif cmd == "list":
                client.list_games()
            elif cmd in ("create", "join"):
                if cmd == "join" and len(parts) != 2:
                    print("Usage: join <game_id>")
                    continue
                if not client.sio.connected and not client.connect():
                    continue
                if cmd == "create":
                    game_id = client.create_game()
                    print(f"Created game {game_id}. Share the id with your opponent.")
                    client.enter_game_mode()
                elif client.join_game(parts[1]):
                    client.enter_game_mode()
            else:
                print("Unknown command. Available: create, join <game_id>, list, exit")

    except (EOFError, KeyboardInterrupt):
        print("\n👋 Exiting...")
    finally:
        if client.sio.connected:
            client.sio.disconnect()


if __name__ == "__main__":
    main()
