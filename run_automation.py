"""
Launch script for the Zenchain wallet automation loop.
"""
from scenarios import automation

if __name__ == "__main__":
    print("Launching Zenchain automation...")
    automation.run()
