#!/usr/bin/env python3
"""
AlumNet CLI - Main Entry Point

Usage:
    alumnet login                       # Login with email and password
    alumnet whoami                      # Show the logged-in user
    alumnet connections                 # List your connections
    alumnet enrollments list            # Admin: list enrollments
    alumnet --help                      # Show help
"""

import argparse
import asyncio
import sys

from rich.console import Console
from rich.prompt import Prompt, Confirm
from rich.table import Table

from cli.client import AlumNetClient, APIError, RouteRedirect, VerificationRequired
from cli.config import CLIConfig


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI"""
    parser = argparse.ArgumentParser(
        prog="alumnet",
        description="AlumNet - alumni and student network from the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  alumnet login                                   Login to your account
  alumnet verify-otp you@college.edu 123456       Verify a new account
  alumnet connect 4f6c...                         Send a connection request
  alumnet enrollments add STU2024010 student      Admin: allow a new signup
  alumnet broadcast -s "Reunion" -m "..." ID ID   Admin: email selected users
  alumnet purge-logs                              Admin: delete all login logs
        """
    )
    parser.add_argument(
        "--server-url",
        default=None,
        help="API base URL (default: $ALUMNET_API_URL or http://localhost:5001/api/v1)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    login_parser = subparsers.add_parser("login", help="Login to AlumNet")
    login_parser.add_argument("--email", "-e", help="Account email")

    subparsers.add_parser("logout", help="Logout and forget the stored token")
    subparsers.add_parser("whoami", help="Show current user info")

    otp_parser = subparsers.add_parser("verify-otp", help="Verify your account with the emailed code")
    otp_parser.add_argument("email")
    otp_parser.add_argument("otp")

    resend_parser = subparsers.add_parser("resend-otp", help="Email a new verification code")
    resend_parser.add_argument("email")

    subparsers.add_parser("connections", help="List your connections")
    connect_parser = subparsers.add_parser("connect", help="Send a connection request")
    connect_parser.add_argument("user_id")
    disconnect_parser = subparsers.add_parser("disconnect", help="Remove a connection")
    disconnect_parser.add_argument("user_id")
    subparsers.add_parser("notifications", help="Show your notifications")

    # Admin commands
    enroll_parser = subparsers.add_parser("enrollments", help="Admin: manage the enrollment allow-list")
    enroll_sub = enroll_parser.add_subparsers(dest="enroll_command")
    enroll_sub.add_parser("list", help="List enrollments")
    add_parser = enroll_sub.add_parser("add", help="Add an enrollment")
    add_parser.add_argument("enrollment_id")
    add_parser.add_argument("role", choices=["student", "alumni", "faculty"])
    delete_parser = enroll_sub.add_parser("delete", help="Delete an enrollment")
    delete_parser.add_argument("enrollment_id")

    activity_parser = subparsers.add_parser("activity", help="Admin: show login/logout activity")
    activity_parser.add_argument("--action", choices=["LOGIN", "LOGOUT"])
    activity_parser.add_argument("--search", help="Filter by email or role")
    activity_parser.add_argument("--page", type=int, default=1)

    broadcast_parser = subparsers.add_parser("broadcast", help="Admin: email selected users")
    broadcast_parser.add_argument("--subject", "-s", required=True)
    broadcast_parser.add_argument("--message", "-m", required=True)
    broadcast_parser.add_argument("user_ids", nargs="+")

    purge_parser = subparsers.add_parser("purge-logs", help="Admin: delete all login/logout logs")
    purge_parser.add_argument("--yes", "-y", action="store_true", help="Skip the confirmation prompt")

    return parser


def _user_table(title: str, users: list) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role", style="cyan")
    table.add_column("Company")
    for user in users:
        table.add_row(
            user.get("id", ""),
            user.get("name") or user.get("username", ""),
            user.get("email", ""),
            user.get("role", ""),
            user.get("currentCompany") or "",
        )
    return table


async def run_command(args: argparse.Namespace, client: AlumNetClient, console: Console) -> int:
    """Execute one parsed command. Returns the process exit code."""
    command = args.command

    if command == "login":
        email = args.email or Prompt.ask("Email")
        password = Prompt.ask("Password", password=True)
        try:
            session = await client.login(email, password)
        except VerificationRequired as e:
            console.print(f"[yellow]{e.message}[/yellow]")
            console.print(f"Run: [cyan]alumnet verify-otp {email} <code>[/cyan]")
            return 1
        console.print(f"[green]✓ Logged in as[/green] [bold]{session.username or session.email}[/bold] ({session.role})")
        return 0

    if command == "logout":
        await client.logout()
        console.print("[green]Logged out successfully[/green]")
        return 0

    if command == "verify-otp":
        body = await client.verify_otp(args.email, args.otp)
        console.print(f"[green]{body.get('message', 'Account verified')}[/green]")
        return 0

    if command == "resend-otp":
        body = await client.resend_otp(args.email)
        console.print(body.get("message", "Code sent"))
        return 0

    if client.store.read() is None:
        raise RouteRedirect("/login")

    if command == "whoami":
        user = await client.me()
        console.print(f"[bold]{user.get('username')}[/bold] <{user.get('email')}>")
        console.print(f"Role: [cyan]{user.get('role')}[/cyan]  Verified: {user.get('isVerified')}")
        return 0

    if command == "connections":
        users = await client.connections()
        if not users:
            console.print("[dim]No connections yet[/dim]")
        else:
            console.print(_user_table(f"My Connections ({len(users)})", users))
        return 0

    if command == "connect":
        body = await client.connect(args.user_id)
        console.print(f"[green]{body.get('message')}[/green]")
        return 0

    if command == "disconnect":
        body = await client.disconnect(args.user_id)
        console.print(body.get("message", "Done"))
        return 0

    if command == "notifications":
        notifications = await client.notifications()
        if not notifications:
            console.print("[dim]No notifications[/dim]")
        for item in notifications:
            console.print(f"[dim]{item.get('createdAt', '')[:16]}[/dim]  {item.get('message')}")
        return 0

    if command == "enrollments":
        if args.enroll_command == "add":
            body = await client.add_enrollment(args.enrollment_id, args.role)
            console.print(f"[green]{body.get('message')}[/green]")
        elif args.enroll_command == "delete":
            body = await client.delete_enrollment(args.enrollment_id)
            console.print(f"[green]{body.get('message')}[/green]")
        else:
            enrollments = await client.list_enrollments()
            table = Table(title=f"Enrollments ({len(enrollments)})")
            table.add_column("Enrollment ID")
            table.add_column("Role", style="cyan")
            table.add_column("Created", style="dim")
            for item in enrollments:
                table.add_row(item.get("enrollmentId", ""), item.get("role", ""), item.get("createdAt", "")[:10])
            console.print(table)
        return 0

    if command == "activity":
        page = await client.activity(action=args.action, search=args.search, page=args.page)
        table = Table(title=f"Activity (page {page.get('page', 1)} of {page.get('totalPages', 1)})")
        table.add_column("Time", style="dim")
        table.add_column("Action")
        table.add_column("Email")
        table.add_column("Role", style="cyan")
        table.add_column("IP")
        for item in page.get("items", []):
            table.add_row(
                item.get("timestamp", "")[:19],
                item.get("action", ""),
                item.get("userEmail", ""),
                item.get("userRole", ""),
                item.get("ipAddress") or "",
            )
        console.print(table)
        return 0

    if command == "broadcast":
        body = await client.broadcast(args.user_ids, args.subject, args.message)
        data = body.get("data") or {}
        console.print(body.get("message", ""))
        console.print(f"Sent: [green]{data.get('emailsSent', 0)}[/green]  Failed: [red]{data.get('emailsFailed', 0)}[/red]")
        return 0

    if command == "purge-logs":
        if not args.yes and not Confirm.ask("[red]Delete ALL login/logout logs? This cannot be undone[/red]"):
            console.print("Cancelled")
            return 1
        body = await client.purge_logs()
        console.print(f"[green]{body.get('message')}[/green]")
        return 0

    return 2


def main():
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(0)

    console = Console()
    config = CLIConfig(api_base_url=args.server_url) if args.server_url else CLIConfig()
    client = AlumNetClient(config)

    try:
        sys.exit(asyncio.run(run_command(args, client, console)))
    except RouteRedirect as e:
        if e.location == "/login":
            console.print("[red]✗ Authentication required[/red]")
            console.print("Please login first: [cyan]alumnet login[/cyan]")
        else:
            console.print("[red]✗ This command is only available to admins[/red]")
        sys.exit(1)
    except APIError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\nCancelled")
        sys.exit(130)


if __name__ == "__main__":
    main()
